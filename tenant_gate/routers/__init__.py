"""
API Routers
"""
from .metrics import router as metrics_router
from .session import router as session_router

__all__ = ["metrics_router", "session_router"]
