"""
Tenant resolution

Five strategies, tried strictly in order and one at a time:

1. user_membership - verified credential -> user's newest active membership
2. subdomain       - <slug>.<app_domain>; an unknown slug ends resolution
3. custom_domain   - tenant whose domain equals the hostname
4. token_claim     - tenantId claim of the verified credential
5. header          - X-Tenant-ID from trusted internal callers

A strategy returns None when it has no opinion (the next one runs) or a
TenantResolution, which is final even when its tenant_id is None.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional

import structlog
from starlette.requests import Request

from .config import Settings
from .directory import TenantDirectory
from .models import Tenant, TokenClaims
from .tokens import TokenVerifier, extract_credential

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TenantResolution:
    """Final answer of the resolver (tenant_id None: tenant-less request)"""
    tenant_id: Optional[str]
    strategy: Optional[str]


Strategy = Callable[[Request, Optional[TokenClaims]], Awaitable[Optional[TenantResolution]]]

UNRESOLVED = TenantResolution(tenant_id=None, strategy=None)


# ============================================================================
# Hostname helpers
# ============================================================================

def normalize_hostname(host: Optional[str]) -> Optional[str]:
    """
    Lower-case host without port or trailing dot

    'localhost:3000' -> 'localhost', 'Acme.App.Example:443' -> 'acme.app.example'
    """
    if not host:
        return None
    host = host.strip().lower()
    if host.startswith("["):
        # IPv6 literal, keep brackets, drop port
        end = host.find("]")
        return host[:end + 1] if end != -1 else host
    host = host.split(":", 1)[0].rstrip(".")
    return host or None


def request_hostname(request: Request) -> Optional[str]:
    """Hostname from the Host header, falling back to the request URL"""
    return normalize_hostname(request.headers.get("host") or request.url.hostname)


def is_app_hostname(hostname: str, app_domain: str) -> bool:
    """True for the app domain itself or any subdomain of it"""
    return hostname == app_domain or hostname.endswith(f".{app_domain}")


def subdomain_label(hostname: str, app_domain: str, reserved: Iterable[str]) -> Optional[str]:
    """
    Leftmost label of a strict subdomain of app_domain

    Returns None for the app domain itself, foreign hosts and reserved labels.
    """
    suffix = f".{app_domain}"
    if not hostname.endswith(suffix):
        return None
    label = hostname[:-len(suffix)].split(".", 1)[0]
    if not label or label in set(reserved):
        return None
    return label


def _active_id(tenant: Optional[Tenant]) -> Optional[str]:
    if tenant is None or not tenant.is_active:
        return None
    return tenant.id


# ============================================================================
# Resolver
# ============================================================================

class TenantResolver:
    """Resolves the tenant of a request from hostname, credential and headers"""

    def __init__(self, directory: TenantDirectory, verifier: TokenVerifier, settings: Settings):
        self.directory = directory
        self.verifier = verifier
        self.settings = settings
        self.strategies: List[Strategy] = [
            self.resolve_from_user_membership,
            self.resolve_from_subdomain,
            self.resolve_from_custom_domain,
            self.resolve_from_token_claim,
            self.resolve_from_header,
        ]

    async def resolve(self, request: Request) -> TenantResolution:
        """Run strategies in order; the first non-None answer wins"""
        token = extract_credential(request, self.settings.auth_cookie_names)
        claims = self.verifier.verify_or_none(token)

        for strategy in self.strategies:
            result = await strategy(request, claims)
            if result is not None:
                logger.debug(
                    "tenant_resolution_final",
                    strategy=result.strategy,
                    tenant_id=result.tenant_id
                )
                return result

        logger.debug("tenant_unresolved")
        return UNRESOLVED

    async def resolve_tenant_id(self, request: Request) -> Optional[str]:
        """Resolved tenant id, or None for a tenant-less request"""
        return (await self.resolve(request)).tenant_id

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def resolve_from_user_membership(
        self, request: Request, claims: Optional[TokenClaims]
    ) -> Optional[TenantResolution]:
        if claims is None:
            return None

        user = await self.directory.find_user_with_active_memberships(claims.user_id)
        if user is None:
            return None

        membership = user.latest_membership
        if membership is None:
            return None

        return TenantResolution(tenant_id=membership.tenant_id, strategy="user_membership")

    async def resolve_from_subdomain(
        self, request: Request, claims: Optional[TokenClaims]
    ) -> Optional[TenantResolution]:
        hostname = request_hostname(request)
        if not hostname:
            return None

        slug = subdomain_label(hostname, self.settings.app_domain, self.settings.reserved_subdomains)
        if slug is None:
            return None

        tenant_id = _active_id(await self.directory.find_tenant_by_slug(slug))
        if tenant_id is None:
            logger.info("tenant_slug_not_found", slug=slug, hostname=hostname)
        return TenantResolution(tenant_id=tenant_id, strategy="subdomain")

    async def resolve_from_custom_domain(
        self, request: Request, claims: Optional[TokenClaims]
    ) -> Optional[TenantResolution]:
        hostname = request_hostname(request)
        if not hostname or is_app_hostname(hostname, self.settings.app_domain):
            return None

        tenant_id = _active_id(await self.directory.find_tenant_by_domain(hostname))
        if tenant_id is None:
            return None
        return TenantResolution(tenant_id=tenant_id, strategy="custom_domain")

    async def resolve_from_token_claim(
        self, request: Request, claims: Optional[TokenClaims]
    ) -> Optional[TenantResolution]:
        if claims is None or not claims.tenant_id:
            return None

        tenant_id = _active_id(await self.directory.find_tenant_by_id(claims.tenant_id))
        if tenant_id is None:
            logger.info("token_tenant_claim_invalid", claimed_tenant_id=claims.tenant_id)
        return TenantResolution(tenant_id=tenant_id, strategy="token_claim")

    async def resolve_from_header(
        self, request: Request, claims: Optional[TokenClaims]
    ) -> Optional[TenantResolution]:
        value = request.headers.get(self.settings.tenant_header)
        if not value:
            return None

        tenant_id = _active_id(await self.directory.find_tenant_by_id(value))
        if tenant_id is None:
            logger.info("tenant_header_invalid", claimed_tenant_id=value)
        return TenantResolution(tenant_id=tenant_id, strategy="header")
