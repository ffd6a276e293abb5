"""
Shared fixtures: in-memory directory, settings, token factory, request builder
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import jwt
import pytest
from starlette.requests import Request

from tenant_gate.config import Settings
from tenant_gate.exceptions import DirectoryError
from tenant_gate.models import Tenant, TenantMembership, User, UserWithMemberships
from tenant_gate.tokens import TokenVerifier

TEST_SECRET = "test-signing-key-for-tenant-gate-0123456789"
APP_DOMAIN = "app.example"

ACME_ID = "11111111-1111-1111-1111-111111111111"
GLOBEX_ID = "22222222-2222-2222-2222-222222222222"
DORMANT_ID = "33333333-3333-3333-3333-333333333333"

ALICE_ID = "aaaaaaaa-0000-0000-0000-000000000001"
BOB_ID = "bbbbbbbb-0000-0000-0000-000000000002"


class FakeDirectory:
    """In-memory tenant directory for testing"""

    def __init__(self):
        self.tenants: List[Tenant] = []
        self.users: Dict[str, User] = {}
        self.memberships: List[TenantMembership] = []
        self.calls: List[tuple] = []
        self.fail = False

    def _check(self, operation: str, value: str):
        self.calls.append((operation, value))
        if self.fail:
            raise DirectoryError("directory offline", operation=operation)

    def add_tenant(self, tenant_id: str, slug: str, domain: Optional[str] = None, is_active: bool = True) -> Tenant:
        tenant = Tenant(id=tenant_id, slug=slug, domain=domain, name=slug.title(), is_active=is_active)
        self.tenants.append(tenant)
        return tenant

    def add_user(self, user_id: str, is_active: bool = True) -> User:
        user = User(id=user_id, email=f"{user_id[:8]}@example.com", is_active=is_active)
        self.users[user_id] = user
        return user

    def add_membership(self, user_id: str, tenant_id: str, role: str, joined_at: datetime, is_active: bool = True):
        self.users.setdefault(user_id, User(id=user_id, email=f"{user_id[:8]}@example.com"))
        self.memberships.append(TenantMembership(
            user_id=user_id,
            tenant_id=tenant_id,
            role=role,
            is_active=is_active,
            joined_at=joined_at
        ))

    async def find_tenant_by_slug(self, slug: str) -> Optional[Tenant]:
        self._check("tenant_by_slug", slug)
        return next((t for t in self.tenants if t.slug == slug.lower()), None)

    async def find_tenant_by_domain(self, domain: str) -> Optional[Tenant]:
        self._check("tenant_by_domain", domain)
        return next((t for t in self.tenants if t.domain == domain.lower()), None)

    async def find_tenant_by_id(self, tenant_id: str) -> Optional[Tenant]:
        self._check("tenant_by_id", tenant_id)
        return next((t for t in self.tenants if t.id == tenant_id), None)

    async def find_user_with_active_memberships(self, user_id: str) -> Optional[UserWithMemberships]:
        self._check("user_memberships", user_id)
        user = self.users.get(user_id)
        if user is None:
            return None
        active_tenants = {t.id for t in self.tenants if t.is_active}
        memberships = sorted(
            (m for m in self.memberships
             if m.user_id == user_id and m.is_active and m.tenant_id in active_tenants),
            key=lambda m: m.joined_at,
            reverse=True
        )
        return UserWithMemberships(user=user, memberships=memberships)


def make_request(
    path: str = "/",
    host: str = APP_DOMAIN,
    query: str = "",
    headers: Optional[Dict[str, str]] = None,
    cookies: Optional[Dict[str, str]] = None,
    method: str = "GET",
) -> Request:
    """Build a Starlette request without a server"""
    raw_headers = [(b"host", host.encode("latin-1"))]
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    if cookies:
        cookie = "; ".join(f"{name}={value}" for name, value in cookies.items())
        raw_headers.append((b"cookie", cookie.encode("latin-1")))

    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "root_path": "",
        "query_string": query.encode("latin-1"),
        "headers": raw_headers,
        "client": ("127.0.0.1", 50000),
        "server": (host.split(":", 1)[0], 80),
    }
    return Request(scope)


def make_token(
    user_id: str = ALICE_ID,
    tenant_id: Optional[str] = None,
    role: Optional[str] = None,
    secret: str = TEST_SECRET,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    payload = {
        "userId": user_id,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    if tenant_id is not None:
        payload["tenantId"] = tenant_id
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        app_domain=APP_DOMAIN,
        jwt_secret_key=TEST_SECRET,
        json_logs=False,
    )


@pytest.fixture
def verifier(settings) -> TokenVerifier:
    return TokenVerifier(settings.jwt_secret_key, settings.jwt_algorithm)


@pytest.fixture
def directory() -> FakeDirectory:
    """
    acme    - active, slug 'acme', custom domain 'portal.acme.test'
    globex  - active, slug 'globex'
    dormant - inactive, slug 'dormant', custom domain 'dormant.test'
    """
    fake = FakeDirectory()
    fake.add_tenant(ACME_ID, "acme", domain="portal.acme.test")
    fake.add_tenant(GLOBEX_ID, "globex")
    fake.add_tenant(DORMANT_ID, "dormant", domain="dormant.test", is_active=False)
    return fake


@pytest.fixture
def joined():
    """Membership timestamps, oldest first"""
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return [base + timedelta(days=30 * i) for i in range(4)]
