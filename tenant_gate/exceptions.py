"""
Custom exceptions for the identity pipeline
Keep it simple but comprehensive
"""
from typing import Optional, Any

class GatewayException(Exception):
    """Base exception for all tenant-gate errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }

# ============================================================
# Directory Exceptions
# ============================================================

class DirectoryError(GatewayException):
    """Tenant/user directory lookup failed (backing store unavailable or query error)"""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="DIRECTORY_ERROR",
            details={"operation": operation} if operation else {}
        )
        self.operation = operation

# ============================================================
# Credential Exceptions
# ============================================================

class InvalidTokenError(GatewayException):
    """Bearer credential is malformed, expired or carries no user id"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(
            message=message,
            error_code="INVALID_TOKEN"
        )

# ============================================================
# Configuration Exceptions
# ============================================================

class ConfigurationError(GatewayException):
    """Settings are inconsistent"""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Invalid configuration for {field}: {message}",
            error_code="CONFIGURATION_ERROR",
            details={"field": field, "error": message}
        )

class RoutePermissionConfigError(GatewayException):
    """Route permission table cannot be built"""

    def __init__(self, message: str, prefix: Optional[Any] = None):
        super().__init__(
            message=message,
            error_code="ROUTE_PERMISSION_CONFIG_ERROR",
            details={"prefix": str(prefix)} if prefix is not None else {}
        )
        self.prefix = prefix
