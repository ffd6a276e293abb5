"""
Tests for API route guards and the role -> permission catalogue

Tests cover:
- 401 for missing, invalid, unknown-user and inactive-user credentials
- 403 for roles outside the allowed set and for missing permissions
- Tenant taken from the pipeline when present, else from the token claim
"""
import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from tenant_gate.guards import require_permission, require_role, require_super_admin
from tenant_gate.main import create_app
from tenant_gate.middleware import TokenClaimRoleProvider
from tenant_gate.models import AuthenticatedUser, RoleName
from tenant_gate.permissions import ROLE_PERMISSIONS, get_permissions_for_role

from conftest import ACME_ID, ALICE_ID, BOB_ID, GLOBEX_ID, bearer, make_token


def client_for(app, host: str = "app.example") -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url=f"http://{host}")


@pytest.fixture
def guarded_app(settings, directory, verifier):
    """Bare app with guarded endpoints, no identity pipeline"""
    app = FastAPI()
    app.state.settings = settings
    app.state.token_verifier = verifier
    app.state.tenant_directory = directory
    app.state.role_provider = TokenClaimRoleProvider(settings.default_role)

    @app.get("/reports")
    async def reports(user: AuthenticatedUser = Depends(require_permission("view:reports"))):
        return {"user_id": user.id, "tenant_id": user.tenant_id}

    @app.get("/hr")
    async def hr(user: AuthenticatedUser = Depends(require_role("HRAdmin", RoleName.HR_MANAGER))):
        return {"role": user.role}

    @app.get("/platform/config")
    async def platform_config(user: AuthenticatedUser = Depends(require_super_admin())):
        return {"role": user.role}

    return app


@pytest.fixture
def app(settings, directory):
    return create_app(settings=settings, directory=directory)


# ============================================================
# Permission catalogue
# ============================================================

def test_unknown_role_has_no_permissions():
    assert get_permissions_for_role("Astronaut") == []
    assert get_permissions_for_role("") == []


def test_every_known_role_has_permissions():
    for role in RoleName:
        assert role.value in ROLE_PERMISSIONS
        assert get_permissions_for_role(role.value)


def test_permissions_are_sorted_and_unique():
    permissions = get_permissions_for_role("SuperAdmin")

    assert permissions == sorted(set(permissions))


def test_role_permission_composition():
    assert "access:tenant_dashboard" in get_permissions_for_role("TenantUser")
    assert "manage:all_tenants" in get_permissions_for_role("SuperAdmin")
    assert "manage:all_tenants" not in get_permissions_for_role("TenantAdmin")
    assert "manage:tenant_users" in get_permissions_for_role("TenantAdmin")

    customer = get_permissions_for_role("Customer")
    assert "create:own_booking" in customer
    assert "view:cart" in customer


# ============================================================
# Authentication (401)
# ============================================================

@pytest.mark.asyncio
async def test_missing_credential_is_unauthorized(guarded_app):
    async with client_for(guarded_app) as client:
        response = await client.get("/reports")

    assert response.status_code == 401
    assert response.json() == {"detail": "Unauthorized"}
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_invalid_credential_is_unauthorized(guarded_app, directory):
    directory.add_user(ALICE_ID)
    forged = make_token(role="TenantManager", secret="some-other-signing-key-0123456789abcdef")

    async with client_for(guarded_app) as client:
        response = await client.get("/reports", headers=bearer(forged))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_user_is_unauthorized(guarded_app):
    async with client_for(guarded_app) as client:
        response = await client.get("/reports", headers=bearer(make_token(user_id=BOB_ID, role="TenantManager")))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_is_unauthorized(guarded_app, directory):
    directory.add_user(ALICE_ID, is_active=False)

    async with client_for(guarded_app) as client:
        response = await client.get("/reports", headers=bearer(make_token(role="TenantManager")))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_credential_from_cookie(guarded_app, directory):
    directory.add_user(ALICE_ID)
    token = make_token(role="TenantManager", tenant_id=GLOBEX_ID)

    async with client_for(guarded_app) as client:
        response = await client.get("/reports", headers={"Cookie": f"auth-token={token}"})

    assert response.status_code == 200
    # No pipeline ran, so the token's tenant claim is used
    assert response.json() == {"user_id": ALICE_ID, "tenant_id": GLOBEX_ID}


# ============================================================
# Authorization (403)
# ============================================================

@pytest.mark.asyncio
async def test_missing_permission_is_forbidden(guarded_app, directory):
    directory.add_user(ALICE_ID)

    async with client_for(guarded_app) as client:
        response = await client.get("/reports", headers=bearer(make_token(role="Employee")))

    assert response.status_code == 403
    assert response.json() == {"detail": "Insufficient permissions"}


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["HRAdmin", "HRManager"])
async def test_allowed_role_passes(guarded_app, directory, role):
    directory.add_user(ALICE_ID)

    async with client_for(guarded_app) as client:
        response = await client.get("/hr", headers=bearer(make_token(role=role)))

    assert response.status_code == 200
    assert response.json() == {"role": role}


@pytest.mark.asyncio
async def test_role_outside_allowed_set_is_forbidden(guarded_app, directory):
    directory.add_user(ALICE_ID)

    async with client_for(guarded_app) as client:
        hr = await client.get("/hr", headers=bearer(make_token(role="TenantAdmin")))
        platform = await client.get("/platform/config", headers=bearer(make_token(role="PlatformAdmin")))

    assert hr.status_code == 403
    assert hr.json() == {"detail": "Forbidden"}
    assert platform.status_code == 403


@pytest.mark.asyncio
async def test_default_role_applies_without_role_claim(guarded_app, directory):
    directory.add_user(ALICE_ID)

    async with client_for(guarded_app) as client:
        response = await client.get("/hr", headers=bearer(make_token()))

    assert response.status_code == 403


# ============================================================
# Session endpoint behind the identity pipeline
# ============================================================

@pytest.mark.asyncio
async def test_session_uses_pipeline_tenant(app, directory):
    directory.add_user(ALICE_ID)
    token = make_token(role="TenantManager", tenant_id=GLOBEX_ID)

    async with client_for(app, "acme.app.example") as client:
        response = await client.get("/api/v1/session", headers=bearer(token))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == ALICE_ID
    # Subdomain beats the token's tenant claim
    assert body["tenant_id"] == ACME_ID
    assert body["role"] == "TenantManager"
    assert body["permissions"] == get_permissions_for_role("TenantManager")


@pytest.mark.asyncio
async def test_session_without_credential_is_unauthorized(app):
    async with client_for(app, "acme.app.example") as client:
        response = await client.get("/api/v1/session")

    # API paths answer 401 instead of redirecting to the login page
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_platform_session_requires_platform_role(app, directory):
    directory.add_user(ALICE_ID)

    async with client_for(app) as client:
        tenant_admin = await client.get("/api/v1/session/platform", headers=bearer(make_token(role="TenantAdmin")))
        support = await client.get("/api/v1/session/platform", headers=bearer(make_token(role="SupportAgent")))

    assert tenant_admin.status_code == 403
    assert support.status_code == 200
    assert support.json()["role"] == "SupportAgent"
