"""
Route permission table

Maps locale-less path prefixes to the roles allowed to open them. The table
is built once at startup and injected into the page authorization stage.

Matching rules:
- a prefix matches a path equal to it, or a path continuing after a '/'
  ('/admin' matches '/admin' and '/admin/users', never '/administrator')
- the longest matching prefix wins
- the root prefix '/' matches every path and is the fallback entry
- prefixes are normalized ('dashboard/reports/' -> '/dashboard/reports');
  two entries normalizing to the same prefix are rejected
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from .exceptions import RoutePermissionConfigError
from .models import RoleName


PLATFORM_STAFF = {RoleName.SUPER_ADMIN.value, RoleName.PLATFORM_ADMIN.value}
TENANT_ADMINS = PLATFORM_STAFF | {RoleName.TENANT_ADMIN.value}

DEFAULT_ROUTE_PERMISSIONS: Dict[str, List[str]] = {
    "/super-admin": [RoleName.SUPER_ADMIN.value],
    "/admin": sorted(PLATFORM_STAFF | {RoleName.SUPPORT_AGENT.value}),
    "/settings": sorted(TENANT_ADMINS),
    "/dashboard/reports": sorted(TENANT_ADMINS | {RoleName.TENANT_MANAGER.value}),
    "/cms": sorted(TENANT_ADMINS | {RoleName.CONTENT_MANAGER.value, RoleName.CONTENT_EDITOR.value}),
    "/commerce": sorted(TENANT_ADMINS | {RoleName.STORE_ADMIN.value, RoleName.STORE_MANAGER.value}),
    "/bookings": sorted(TENANT_ADMINS | {RoleName.BOOKING_ADMIN.value, RoleName.AGENT.value}),
    "/hrms": sorted(TENANT_ADMINS | {RoleName.HR_ADMIN.value, RoleName.HR_MANAGER.value}),
    "/legal": sorted(TENANT_ADMINS | {RoleName.TENANT_MANAGER.value}),
}


def normalize_prefix(prefix: str) -> str:
    """Leading slash added, trailing slashes removed (root stays '/')"""
    prefix = prefix.strip()
    if not prefix.startswith("/"):
        prefix = f"/{prefix}"
    return prefix.rstrip("/") or "/"


def prefix_matches(prefix: str, path: str) -> bool:
    if prefix == "/":
        return True
    return path == prefix or path.startswith(f"{prefix}/")


@dataclass(frozen=True)
class RoutePermission:
    """One table entry"""
    prefix: str
    allowed_roles: FrozenSet[str]

    def allows(self, role: str) -> bool:
        return role in self.allowed_roles


class RoutePermissionTable:
    """Immutable prefix -> allowed roles table with longest-prefix lookup"""

    def __init__(self, entries: Iterable[Tuple[str, Iterable[str]]]):
        sources: Dict[str, str] = {}
        built: List[RoutePermission] = []

        for raw_prefix, roles in entries:
            if not isinstance(raw_prefix, str) or not raw_prefix.strip():
                raise RoutePermissionConfigError("Route prefix must be a non-empty string", raw_prefix)
            if isinstance(roles, str):
                raise RoutePermissionConfigError(
                    f"Allowed roles for {raw_prefix!r} must be a list, not a string", raw_prefix
                )

            prefix = normalize_prefix(raw_prefix)
            if prefix in sources:
                raise RoutePermissionConfigError(
                    f"Route prefixes {sources[prefix]!r} and {raw_prefix!r} both normalize to {prefix!r}",
                    prefix
                )
            sources[prefix] = raw_prefix
            built.append(RoutePermission(prefix=prefix, allowed_roles=frozenset(roles)))

        # Longest first, so the first hit is the longest match
        self._entries: Tuple[RoutePermission, ...] = tuple(
            sorted(built, key=lambda entry: len(entry.prefix), reverse=True)
        )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "RoutePermissionTable":
        return cls(mapping.items())

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "RoutePermissionTable":
        """
        Load {"<prefix>": ["Role", ...], ...} from a JSON file

        Raises:
            RoutePermissionConfigError: unreadable file or wrong shape
        """
        try:
            data = json.loads(Path(path).read_text())
        except (OSError, ValueError) as e:
            raise RoutePermissionConfigError(f"Cannot load route permissions from {path}: {e}")

        if not isinstance(data, dict):
            raise RoutePermissionConfigError(f"Route permissions in {path} must be a JSON object")
        return cls.from_mapping(data)

    @classmethod
    def default(cls) -> "RoutePermissionTable":
        return cls.from_mapping(DEFAULT_ROUTE_PERMISSIONS)

    @property
    def entries(self) -> Tuple[RoutePermission, ...]:
        return self._entries

    def match(self, path: str) -> Optional[RoutePermission]:
        """Longest entry matching path, or None when the route is unprotected"""
        for entry in self._entries:
            if prefix_matches(entry.prefix, path):
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)


def load_route_permissions(path: Optional[str]) -> RoutePermissionTable:
    """Table from the configured JSON file, or the built-in default"""
    if path:
        return RoutePermissionTable.from_json_file(path)
    return RoutePermissionTable.default()
