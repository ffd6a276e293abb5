"""
Identity pipeline wiring and Starlette adapter

build_identity_pipeline() chains the stages in their fixed order:
metrics -> tenant -> locale -> authentication -> page authorization.

IdentityPipelineMiddleware runs that chain for every request. A terminal
response is returned as-is; otherwise the resolved context is projected
onto outbound request headers (inbound copies are stripped first so
clients cannot spoof them), stored on request.state.identity, and the
application handler runs. Timing covers the whole chain including the
handler.
"""
import time
import uuid
from typing import List, Optional, Tuple

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import Settings
from ..context import OUTBOUND_HEADERS, RequestContext, request_id_var
from ..exceptions import DirectoryError
from ..metrics import track_directory_error, track_request
from ..resolver import TenantResolver
from ..routes import RoutePermissionTable
from ..tokens import TokenVerifier
from .authentication import RoleProvider, authentication_stage
from .authorization import page_authorization_stage
from .compose import Middleware, compose
from .locale import locale_stage
from .metrics import metrics_stage
from .tenant import tenant_stage

logger = structlog.get_logger()


def build_identity_pipeline(
    resolver: TenantResolver,
    verifier: TokenVerifier,
    role_provider: RoleProvider,
    route_table: RoutePermissionTable,
    settings: Settings
) -> Middleware:
    return compose(
        metrics_stage(),
        tenant_stage(resolver),
        locale_stage(settings),
        authentication_stage(verifier, role_provider, settings),
        page_authorization_stage(route_table, settings),
    )


def apply_outbound_headers(request: Request, context: RequestContext) -> None:
    """Replace any inbound identity headers with the resolved values"""
    reserved = {name.encode("latin-1") for name in OUTBOUND_HEADERS}
    headers: List[Tuple[bytes, bytes]] = [
        (name, value) for name, value in request.scope["headers"]
        if name.lower() not in reserved
    ]
    for name, value in context.outbound_headers().items():
        headers.append((name.encode("latin-1"), value.encode("utf-8")))
    request.scope["headers"] = headers


class IdentityPipelineMiddleware(BaseHTTPMiddleware):
    """
    Runs the identity pipeline in front of the application

    The pipeline is passed explicitly or read from app.state.identity_pipeline
    (set during application startup once the directory is available).
    """

    def __init__(self, app, pipeline: Optional[Middleware] = None):
        super().__init__(app)
        self.pipeline = pipeline

    async def dispatch(self, request: Request, call_next):
        pipeline = self.pipeline or request.app.state.identity_pipeline

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path
        )

        context = RequestContext(request_id=request_id)
        entered = time.monotonic()

        try:
            response = await pipeline(request, context)
            if response is None:
                outcome = "passed"
                apply_outbound_headers(request, context)
                request.state.identity = context
                response = await call_next(request)
            else:
                outcome = "redirect"
        except DirectoryError as e:
            # Fail closed: never serve a request whose tenant context is unknown
            duration = time.monotonic() - (context.started_at or entered)
            track_directory_error(e.operation)
            track_request("error", duration)
            logger.error("directory_unavailable", error=e.message, operation=e.operation)
            response = JSONResponse(status_code=503, content=e.to_dict())
            response.headers["X-Request-ID"] = request_id
            self._unbind()
            return response
        except Exception as e:
            duration = time.monotonic() - (context.started_at or entered)
            track_request("error", duration)
            logger.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2)
            )
            self._unbind()
            raise

        duration = time.monotonic() - (context.started_at or entered)
        track_request(outcome, duration)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration * 1000:.2f}ms"

        logger.info(
            "request_completed",
            status_code=response.status_code,
            outcome=outcome,
            duration_ms=round(duration * 1000, 2),
            locale=context.active_locale
        )
        self._unbind()
        return response

    @staticmethod
    def _unbind():
        structlog.contextvars.unbind_contextvars("request_id", "method", "path", "tenant_id", "user_id")
