"""
Locale stage

Decided from the URL path only (never Accept-Language) so routing stays
deterministic and cacheable:

- infrastructure prefixes and static assets pass through untouched
- '/' redirects permanently to '/{default_locale}'
- '/{locale}' or '/{locale}/...' sets active_locale and path_without_locale
- anything else redirects permanently to '/{default_locale}{path}'

Redirects keep the query string.
"""
from typing import Iterable, Optional, Tuple

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from ..config import Settings
from ..context import RequestContext
from ..logging_config import get_logger
from ..routes import prefix_matches
from .compose import Middleware

logger = get_logger(__name__)

PERMANENT_REDIRECT = 308


def split_locale(path: str, supported_locales: Iterable[str]) -> Optional[Tuple[str, str]]:
    """
    Split '/{locale}{rest}' into (locale, rest)

    rest always starts with '/': '/es' -> ('es', '/'), '/es/a/b' -> ('es', '/a/b').
    Returns None when no supported locale prefixes the path.
    """
    for locale in supported_locales:
        prefix = f"/{locale}"
        if path == prefix:
            return locale, "/"
        if path.startswith(f"{prefix}/"):
            return locale, path[len(prefix):]
    return None


def is_bypassed(path: str, prefixes: Iterable[str], extensions: Iterable[str]) -> bool:
    """Infrastructure route or static asset"""
    if any(prefix_matches(prefix.rstrip("/") or "/", path) for prefix in prefixes):
        return True
    lowered = path.lower()
    return any(lowered.endswith(ext) for ext in extensions)


def with_query(path: str, request: Request) -> str:
    query = request.url.query
    return f"{path}?{query}" if query else path


def locale_stage(settings: Settings) -> Middleware:
    supported = tuple(settings.supported_locales)
    default_locale = settings.default_locale

    async def route_locale(request: Request, context: RequestContext) -> Optional[Response]:
        path = request.url.path

        if is_bypassed(path, settings.bypass_prefixes, settings.static_file_extensions):
            context.bypassed = True
            return None

        if path == "/":
            target = with_query(f"/{default_locale}", request)
            logger.debug("locale_root_redirect", target=target)
            return RedirectResponse(target, status_code=PERMANENT_REDIRECT)

        found = split_locale(path, supported)
        if found is None:
            target = with_query(f"/{default_locale}{path}", request)
            logger.debug("locale_prefix_redirect", path=path, target=target)
            return RedirectResponse(target, status_code=PERMANENT_REDIRECT)

        context.active_locale, context.path_without_locale = found
        return None

    return route_locale
