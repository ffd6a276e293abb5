"""
Session Router

Who the caller is, as seen by API guards
"""
from fastapi import APIRouter, Depends

from ..guards import get_current_user, require_platform_access
from ..models import AuthenticatedUser

router = APIRouter(prefix="/api/v1/session", tags=["Session"])


@router.get("", response_model=AuthenticatedUser)
async def current_session(user: AuthenticatedUser = Depends(get_current_user)):
    """Authenticated user with role and effective permissions"""
    return user


@router.get("/platform", response_model=AuthenticatedUser)
async def platform_session(user: AuthenticatedUser = Depends(require_platform_access())):
    """Same as the session endpoint, limited to platform staff"""
    return user
