"""
Page authorization stage

Checks the authenticated role against the route permission table using the
locale-less path. Missing context (no locale, path or role) is logged and
let through: earlier stages own authentication gating.
"""
from typing import Optional
from urllib.parse import urlencode

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from ..config import Settings
from ..context import RequestContext
from ..logging_config import get_logger
from ..metrics import track_access_denied
from ..routes import RoutePermissionTable, prefix_matches
from .compose import Middleware

logger = get_logger(__name__)

TEMPORARY_REDIRECT = 307


def page_authorization_stage(table: RoutePermissionTable, settings: Settings) -> Middleware:
    async def authorize(request: Request, context: RequestContext) -> Optional[Response]:
        if context.bypassed:
            return None

        locale = context.active_locale
        path = context.path_without_locale
        role = context.role
        if locale is None or path is None or role is None:
            logger.warning(
                "page_authorization_context_missing",
                path=request.url.path,
                has_locale=locale is not None,
                has_path=path is not None,
                has_role=role is not None
            )
            return None

        # The denial page itself is never guarded, a catch-all entry would loop
        if prefix_matches(settings.access_denied_route, path):
            return None

        entry = table.match(path)
        if entry is None or entry.allows(role):
            return None

        logger.warning(
            "page_access_denied",
            path=request.url.path,
            route_prefix=entry.prefix,
            role=role
        )
        track_access_denied(entry.prefix)
        target = f"/{locale}{settings.access_denied_route}?{urlencode({'from': request.url.path})}"
        return RedirectResponse(target, status_code=TEMPORARY_REDIRECT)

    return authorize
