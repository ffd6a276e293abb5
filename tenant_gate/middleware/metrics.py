"""Timing stage: stamps the request start, never terminates"""
import time
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from ..context import RequestContext
from .compose import Middleware


def metrics_stage() -> Middleware:
    async def record_start(request: Request, context: RequestContext) -> Optional[Response]:
        if context.started_at is None:
            context.started_at = time.monotonic()
        return None

    return record_start
