"""
Bearer credential extraction and verification

The same extraction rules are shared by the tenant resolver and the
authentication stage so both see the same principal.
"""
import logging
from typing import Optional, Sequence

import jwt
from starlette.requests import Request

from .exceptions import InvalidTokenError
from .models import TokenClaims

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def extract_credential(request: Request, cookie_names: Sequence[str]) -> Optional[str]:
    """
    Pull a bearer credential from the request

    Priority:
    1. Authorization: Bearer <token>
    2. First non-empty cookie in cookie_names

    Returns:
        Raw token string, or None when the request carries no credential
    """
    auth_header = request.headers.get("authorization", "")
    if auth_header[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        token = auth_header[len(BEARER_PREFIX):].strip()
        if token:
            return token

    for name in cookie_names:
        token = request.cookies.get(name)
        if token:
            return token

    return None


def _role_claim(value) -> Optional[str]:
    # Role may be issued as a plain string or as {"name": ...}
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict) and isinstance(value.get("name"), str):
        return value["name"]
    return None


class TokenVerifier:
    """HMAC JWT verifier yielding TokenClaims"""

    def __init__(self, secret_key: str, algorithm: str = "HS256", leeway: int = 0):
        if not secret_key:
            raise ValueError("JWT secret key not configured")
        self._secret_key = secret_key
        self._algorithms = [algorithm]
        self._leeway = leeway

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a bearer token

        Raises:
            InvalidTokenError: expired, malformed, bad signature or no user id
        """
        if not token or not token.strip():
            raise InvalidTokenError("Empty token")

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=self._algorithms,
                leeway=self._leeway,
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        user_id = payload.get("userId") or payload.get("user_id")
        if not user_id or not isinstance(user_id, str):
            raise InvalidTokenError("Token missing userId claim")

        tenant_id = payload.get("tenantId") or payload.get("tenant_id")

        return TokenClaims(
            user_id=user_id,
            tenant_id=str(tenant_id) if tenant_id else None,
            role=_role_claim(payload.get("role")),
        )

    def verify_or_none(self, token: Optional[str]) -> Optional[TokenClaims]:
        """Verification boundary: invalid credentials are treated as absent"""
        if token is None:
            return None
        try:
            return self.verify(token)
        except InvalidTokenError as e:
            logger.debug(f"Discarding credential: {e.message}")
            return None
