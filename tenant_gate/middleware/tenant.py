"""Tenant stage: stores the resolved tenant id, never terminates"""
from typing import Optional

import structlog
from starlette.requests import Request
from starlette.responses import Response

from ..context import RequestContext, tenant_id_var
from ..logging_config import get_logger
from ..metrics import track_tenant_resolution
from ..resolver import TenantResolver
from .compose import Middleware

logger = get_logger(__name__)


def tenant_stage(resolver: TenantResolver) -> Middleware:
    async def resolve_tenant(request: Request, context: RequestContext) -> Optional[Response]:
        resolution = await resolver.resolve(request)
        context.tenant_id = resolution.tenant_id
        track_tenant_resolution(resolution.strategy)

        if resolution.tenant_id:
            tenant_id_var.set(resolution.tenant_id)
            structlog.contextvars.bind_contextvars(tenant_id=resolution.tenant_id)
            logger.debug("tenant_resolved", strategy=resolution.strategy)
        return None

    return resolve_tenant
