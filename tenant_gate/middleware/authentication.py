"""
Authentication stage

Establishes the principal for page routes. Public pages and infrastructure
paths pass through; any other page without a valid credential is redirected
to the locale's login page with a callbackUrl back to the original URL.

The principal's effective role comes from a RoleProvider, the boundary to
whatever session system decides roles for the active tenant.
"""
from typing import Iterable, Optional, Protocol
from urllib.parse import urlencode

import structlog
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from ..config import Settings
from ..context import RequestContext, user_id_var
from ..logging_config import get_logger
from ..models import Principal, TokenClaims
from ..routes import prefix_matches
from ..tokens import TokenVerifier, extract_credential
from .compose import Middleware

logger = get_logger(__name__)

TEMPORARY_REDIRECT = 307


class RoleProvider(Protocol):
    """Decides the principal's effective role for the active tenant"""

    async def role_for(self, principal: Principal, claims: TokenClaims, tenant_id: Optional[str]) -> str: ...


class TokenClaimRoleProvider:
    """Role issued into the token, or the configured default role"""

    def __init__(self, default_role: str):
        self.default_role = default_role

    async def role_for(self, principal: Principal, claims: TokenClaims, tenant_id: Optional[str]) -> str:
        return claims.role or self.default_role


def is_public_route(path: str, public_routes: Iterable[str]) -> bool:
    return any(route != "/" and prefix_matches(route, path) for route in public_routes)


def login_redirect(request: Request, locale: str, settings: Settings) -> RedirectResponse:
    callback = request.url.path
    if request.url.query:
        callback = f"{callback}?{request.url.query}"
    target = f"/{locale}{settings.login_route}?{urlencode({'callbackUrl': callback})}"
    return RedirectResponse(target, status_code=TEMPORARY_REDIRECT)


def authentication_stage(
    verifier: TokenVerifier,
    role_provider: RoleProvider,
    settings: Settings
) -> Middleware:
    async def authenticate(request: Request, context: RequestContext) -> Optional[Response]:
        if context.bypassed or context.active_locale is None:
            return None

        # Login page is always public
        public_routes = [*settings.public_routes, settings.login_route]
        if is_public_route(context.path_without_locale or "/", public_routes):
            return None

        token = extract_credential(request, settings.auth_cookie_names)
        claims = verifier.verify_or_none(token)
        if claims is None:
            logger.info(
                "authentication_required",
                path=request.url.path,
                credential_present=token is not None
            )
            return login_redirect(request, context.active_locale, settings)

        principal = Principal.from_claims(claims)
        role = await role_provider.role_for(principal, claims, context.tenant_id)

        context.principal = principal.model_copy(update={"role": role})
        context.role = role

        user_id_var.set(principal.user_id)
        structlog.contextvars.bind_contextvars(user_id=principal.user_id)
        return None

    return authenticate
