"""
API route guards
FastAPI dependencies for endpoints that answer 401/403 instead of redirecting

Usage:
    @router.get("/reports")
    async def reports(user: AuthenticatedUser = Depends(require_permission("view:reports"))):
        ...
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from .models import AuthenticatedUser, Principal, RoleName
from .permissions import get_permissions_for_role
from .tokens import extract_credential

logger = logging.getLogger(__name__)


async def authenticate_user(request: Request) -> Optional[AuthenticatedUser]:
    """
    Resolve the active user behind the request credential

    Returns None when there is no credential, the credential does not verify,
    or the user is unknown or deactivated.

    Raises:
        DirectoryError: directory unreachable (served as 503)
    """
    state = request.app.state
    settings = state.settings

    token = extract_credential(request, settings.auth_cookie_names)
    claims = state.token_verifier.verify_or_none(token)
    if claims is None:
        return None

    record = await state.tenant_directory.find_user_with_active_memberships(claims.user_id)
    if record is None:
        logger.info(f"Credential for unknown user {claims.user_id}")
        return None
    if not record.user.is_active:
        logger.warning(f"Rejected credential for inactive user {claims.user_id}")
        return None

    # Tenant resolved by the pipeline wins over the token's claim
    identity = getattr(request.state, "identity", None)
    tenant_id = identity.tenant_id if identity is not None else claims.tenant_id

    role = await state.role_provider.role_for(Principal.from_claims(claims), claims, tenant_id)

    return AuthenticatedUser(
        id=record.user.id,
        email=record.user.email,
        role=role,
        tenant_id=tenant_id,
        permissions=get_permissions_for_role(role)
    )


async def get_current_user(
    user: Optional[AuthenticatedUser] = Depends(authenticate_user)
) -> AuthenticatedUser:
    """Require an authenticated, active user"""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


# ============================================================
# RBAC Dependencies
# ============================================================

def require_role(*roles: str):
    """
    Dependency factory allowing only the listed roles

    Usage:
        @app.get("/admin/endpoint")
        async def admin_endpoint(user: AuthenticatedUser = Depends(require_role("TenantAdmin"))):
            ...
    """
    allowed = {r.value if isinstance(r, RoleName) else r for r in roles}

    async def check_role(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed:
            logger.warning(f"User {user.id} role {user.role} not in {sorted(allowed)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return user

    return check_role


def require_permission(permission: str):
    """Dependency factory requiring one permission from the user's role"""

    async def check_permission(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if not user.has_permission(permission):
            logger.warning(f"User {user.id} role {user.role} lacks {permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return user

    return check_permission


def require_super_admin():
    return require_role(RoleName.SUPER_ADMIN)


def require_platform_access():
    """Platform staff: super admins, platform admins and support agents"""
    return require_role(RoleName.SUPER_ADMIN, RoleName.PLATFORM_ADMIN, RoleName.SUPPORT_AGENT)
