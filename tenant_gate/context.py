"""
Per-request identity context

RequestContext is threaded through every pipeline stage: stage k writes,
stage k+1 reads. The ASGI adapter projects it onto outbound request headers
for the application handler, and mirrors the ids into context variables so
log lines and helpers anywhere in the request can read them.
"""
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote

from .models import Principal


# ============================================================================
# Outbound request headers (stable names, read by application handlers)
# ============================================================================

ACTIVE_LOCALE_HEADER = "x-active-locale"
PATH_WITHOUT_LOCALE_HEADER = "x-path-without-locale"
USER_ROLE_HEADER = "x-user-role"
USER_ID_HEADER = "x-user-id"
RESOLVED_TENANT_HEADER = "x-resolved-tenant-id"

OUTBOUND_HEADERS = (
    ACTIVE_LOCALE_HEADER,
    PATH_WITHOUT_LOCALE_HEADER,
    USER_ROLE_HEADER,
    USER_ID_HEADER,
    RESOLVED_TENANT_HEADER,
)

PATH_SAFE = "/:@!$&'()*+,;=-._~"


@dataclass
class RequestContext:
    """Identity facts resolved so far for the current request"""
    request_id: Optional[str] = None
    started_at: Optional[float] = None
    tenant_id: Optional[str] = None
    active_locale: Optional[str] = None
    path_without_locale: Optional[str] = None
    principal: Optional[Principal] = None
    role: Optional[str] = None
    # Infrastructure path (api, assets) skipped by locale routing
    bypassed: bool = False

    def outbound_headers(self) -> Dict[str, str]:
        """
        Header projection of the resolved facts (unset facts are omitted)

        The path is percent-encoded so non-ASCII segments survive as header bytes.
        """
        path = quote(self.path_without_locale, safe=PATH_SAFE) if self.path_without_locale else None
        values = {
            ACTIVE_LOCALE_HEADER: self.active_locale,
            PATH_WITHOUT_LOCALE_HEADER: path,
            USER_ROLE_HEADER: self.role,
            USER_ID_HEADER: self.principal.user_id if self.principal else None,
            RESOLVED_TENANT_HEADER: self.tenant_id,
        }
        return {name: value for name, value in values.items() if value is not None}


# ============================================================================
# Context Variables
# ============================================================================

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

tenant_id_var: ContextVar[str] = ContextVar("tenant_id", default="")

user_id_var: ContextVar[str] = ContextVar("user_id", default="")


def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_var.get()


def get_tenant_id() -> Optional[str]:
    """Get current tenant ID from context"""
    tenant_id = tenant_id_var.get()
    return tenant_id if tenant_id else None


def get_user_id() -> Optional[str]:
    """Get current user ID from context"""
    user_id = user_id_var.get()
    return user_id if user_id else None
