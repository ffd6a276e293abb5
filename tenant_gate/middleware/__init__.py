"""Identity pipeline stages and their composition"""

from .authentication import RoleProvider, TokenClaimRoleProvider, authentication_stage
from .authorization import page_authorization_stage
from .compose import Middleware, compose
from .locale import locale_stage
from .metrics import metrics_stage
from .pipeline import IdentityPipelineMiddleware, build_identity_pipeline
from .tenant import tenant_stage

__all__ = [
    "IdentityPipelineMiddleware",
    "Middleware",
    "RoleProvider",
    "TokenClaimRoleProvider",
    "authentication_stage",
    "build_identity_pipeline",
    "compose",
    "locale_stage",
    "metrics_stage",
    "page_authorization_stage",
    "tenant_stage",
]
