"""
Tenant directory accessor

Read-only lookups the resolver needs. The pipeline depends on the
TenantDirectory protocol; PostgresTenantDirectory is the production
implementation over an asyncpg pool.
"""
import asyncio
import logging
from typing import Optional, Protocol, Type, TypeVar

import asyncpg
from pydantic import BaseModel, ValidationError

from .exceptions import DirectoryError
from .models import Tenant, TenantMembership, User, UserWithMemberships

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TenantDirectory(Protocol):
    """Lookups against the tenant/user directory"""

    async def find_tenant_by_slug(self, slug: str) -> Optional[Tenant]: ...

    async def find_tenant_by_domain(self, domain: str) -> Optional[Tenant]: ...

    async def find_tenant_by_id(self, tenant_id: str) -> Optional[Tenant]: ...

    async def find_user_with_active_memberships(self, user_id: str) -> Optional[UserWithMemberships]: ...


TENANT_COLUMNS = "id::text AS id, slug, domain, name, is_active"

# Lookup failures that mean the backing store is unhealthy, not that the row is missing
BACKING_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _build(operation: str, model: Type[ModelT], row) -> ModelT:
    """Model from a directory row; a row that does not fit is a directory fault"""
    try:
        return model(**dict(row))
    except ValidationError as e:
        logger.error(f"Directory lookup {operation} returned a malformed {model.__name__} row: {e}")
        raise DirectoryError(f"Malformed {model.__name__} row", operation=operation)


class PostgresTenantDirectory:
    """
    Directory backed by PostgreSQL

    Tables: tenants, users, tenant_memberships. Ids are compared as text so
    that untrusted identifiers (X-Tenant-ID, token claims) never fail uuid
    casting.
    """

    def __init__(self, pool):
        self.pool = pool

    async def _fetchrow(self, operation: str, query: str, *args):
        try:
            return await self.pool.fetchrow(query, *args)
        except BACKING_STORE_ERRORS as e:
            logger.error(f"Directory lookup {operation} failed: {e}")
            raise DirectoryError(f"Directory lookup failed: {e}", operation=operation)

    async def _fetch(self, operation: str, query: str, *args):
        try:
            return await self.pool.fetch(query, *args)
        except BACKING_STORE_ERRORS as e:
            logger.error(f"Directory lookup {operation} failed: {e}")
            raise DirectoryError(f"Directory lookup failed: {e}", operation=operation)

    async def _fetch_tenant(self, operation: str, condition: str, value: str) -> Optional[Tenant]:
        row = await self._fetchrow(
            operation,
            f"SELECT {TENANT_COLUMNS} FROM tenants WHERE {condition}",
            value
        )
        return _build(operation, Tenant, row) if row else None

    async def find_tenant_by_slug(self, slug: str) -> Optional[Tenant]:
        return await self._fetch_tenant("tenant_by_slug", "slug = $1", slug.lower())

    async def find_tenant_by_domain(self, domain: str) -> Optional[Tenant]:
        return await self._fetch_tenant("tenant_by_domain", "lower(domain) = $1", domain.lower())

    async def find_tenant_by_id(self, tenant_id: str) -> Optional[Tenant]:
        return await self._fetch_tenant("tenant_by_id", "id::text = $1", tenant_id)

    async def find_user_with_active_memberships(self, user_id: str) -> Optional[UserWithMemberships]:
        """
        User plus active memberships in active tenants, newest first

        The user row is returned even when the user is deactivated; callers
        that authenticate decide what an inactive user means.

        Returns:
            None when the user does not exist
        """
        user_row = await self._fetchrow(
            "user_by_id",
            "SELECT id::text AS id, email, is_active FROM users WHERE id::text = $1",
            user_id
        )
        if not user_row:
            return None

        rows = await self._fetch(
            "user_memberships",
            """
            SELECT
                m.user_id::text AS user_id,
                m.tenant_id::text AS tenant_id,
                m.role,
                m.is_active,
                m.joined_at
            FROM tenant_memberships m
            INNER JOIN tenants t ON t.id = m.tenant_id
            WHERE m.user_id::text = $1 AND m.is_active = true AND t.is_active = true
            ORDER BY m.joined_at DESC
            """,
            user_id
        )

        return UserWithMemberships(
            user=_build("user_by_id", User, user_row),
            memberships=[_build("user_memberships", TenantMembership, row) for row in rows]
        )
