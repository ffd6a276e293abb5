"""
Middleware composition

A pipeline stage is ``async (request, context) -> Response | None``:
returning a response terminates the chain, returning None continues it.
Stages hand facts downstream by writing to the shared RequestContext.
"""
from typing import Awaitable, Callable, Optional

from starlette.requests import Request
from starlette.responses import Response

from ..context import RequestContext

Middleware = Callable[[Request, RequestContext], Awaitable[Optional[Response]]]


def compose(*middlewares: Middleware) -> Middleware:
    """
    Chain stages into a single stage

    The composed stage runs each stage in order and returns the first
    response produced; later stages are not invoked. If every stage
    continues, it returns None and the caller runs the application handler.
    Exceptions raised by a stage propagate unchanged.
    """
    stages = tuple(middlewares)

    async def composed(request: Request, context: RequestContext) -> Optional[Response]:
        for stage in stages:
            response = await stage(request, context)
            if response is not None:
                return response
        return None

    return composed
