"""
Pydantic models for the tenant/user directory and verified credentials
All models in one place for simplicity
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum

# ============================================================
# Enums
# ============================================================

class RoleName(str, Enum):
    """Role names known to the platform (custom role strings are also accepted)"""
    # Global platform roles
    SUPER_ADMIN = "SuperAdmin"
    PLATFORM_ADMIN = "PlatformAdmin"
    SUPPORT_AGENT = "SupportAgent"
    # Tenant level roles
    TENANT_ADMIN = "TenantAdmin"
    TENANT_MANAGER = "TenantManager"
    TENANT_USER = "TenantUser"
    # Module roles
    CONTENT_MANAGER = "ContentManager"
    CONTENT_EDITOR = "ContentEditor"
    HR_ADMIN = "HRAdmin"
    HR_MANAGER = "HRManager"
    EMPLOYEE = "Employee"
    BOOKING_ADMIN = "BookingAdmin"
    AGENT = "Agent"
    CUSTOMER = "Customer"
    STORE_ADMIN = "StoreAdmin"
    STORE_MANAGER = "StoreManager"
    # Complementary roles
    FINANCE_MANAGER = "FinanceManager"
    SALES_REP = "SalesRep"
    INSTRUCTOR = "Instructor"
    PROJECT_LEAD = "ProjectLead"

# ============================================================
# Directory Models
# ============================================================

class Tenant(BaseModel):
    """Tenant as stored in the directory"""
    id: str
    slug: str = Field(..., min_length=1)
    domain: Optional[str] = None
    name: str
    is_active: bool = True

    @field_validator("slug", "domain", mode="after")
    @classmethod
    def lowercase_host_parts(cls, v):
        """Slugs and domains are compared against lower-cased hostnames"""
        return v.lower() if v is not None else v

    model_config = ConfigDict(frozen=True)

class User(BaseModel):
    """Directory user"""
    id: str
    email: str
    is_active: bool = True

    model_config = ConfigDict(frozen=True)

class TenantMembership(BaseModel):
    """User <-> Tenant link carrying the role held in that tenant"""
    user_id: str
    tenant_id: str
    role: str
    is_active: bool = True
    joined_at: datetime

    model_config = ConfigDict(frozen=True)

class UserWithMemberships(BaseModel):
    """User plus active memberships, newest first"""
    user: User
    memberships: List[TenantMembership] = []

    @property
    def latest_membership(self) -> Optional[TenantMembership]:
        """Most recently joined active membership"""
        active = [m for m in self.memberships if m.is_active]
        if not active:
            return None
        return max(active, key=lambda m: m.joined_at)

# ============================================================
# Credential Models
# ============================================================

class TokenClaims(BaseModel):
    """Claims extracted from a verified bearer credential"""
    user_id: str
    tenant_id: Optional[str] = None
    role: Optional[str] = None

    model_config = ConfigDict(frozen=True)

class Principal(BaseModel):
    """Authenticated identity for one request"""
    user_id: str
    tenant_id: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "Principal":
        return cls(user_id=claims.user_id, tenant_id=claims.tenant_id)


class AuthenticatedUser(BaseModel):
    """Active directory user behind a verified credential, with effective permissions"""
    id: str
    email: str
    role: str
    tenant_id: Optional[str] = None
    permissions: List[str] = []

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions
