"""
Credential and Token Service
Password hashing with passlib and signed session tokens with python-jose.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from recruitment.core.config import settings
from recruitment.core.exceptions import AuthenticationError

# =============================================================================
# Password Hashing
# =============================================================================

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash. Malformed hashes never verify."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


# =============================================================================
# JWT Token Management
# =============================================================================


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by a session token."""

    user_id: UUID
    email: str
    role: Optional[str]
    issued_at: datetime
    expires_at: datetime
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _expiry_delta(expires_delta: Optional[timedelta]) -> timedelta:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiry_minutes)
    return max(expires_delta, timedelta(minutes=1))


def create_access_token(
    user_id: UUID,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed session token for the given identity and role."""
    now = datetime.now(timezone.utc)
    expire = now + _expiry_delta(expires_delta)
    to_encode = {
        "sub": str(user_id),
        "user_id": str(user_id),
        "email": email,
        "role": role,
        "iss": settings.jwt_issuer,
        "iat": now,
        "nbf": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenClaims:
    """
    Decode and validate a session token.

    Signature, issuer, not-before and expiry are all checked; any failure
    raises ``AuthenticationError("Invalid or expired token")``.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
        user_id = UUID(payload.get("user_id") or payload["sub"])
        email = payload.get("email")
        if not email:
            raise JWTError("Token missing email")
        return TokenClaims(
            user_id=user_id,
            email=email,
            role=payload.get("role"),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            raw=payload,
        )
    except (JWTError, KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token")


def refresh_access_token(token: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Re-issue a token with a fresh expiry.

    The old token must still validate; identity and role are carried over.
    """
    claims = decode_token(token)
    return create_access_token(
        user_id=claims.user_id,
        email=claims.email,
        role=claims.role,
        expires_delta=expires_delta,
    )
