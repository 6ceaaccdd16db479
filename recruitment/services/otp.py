"""One-time codes for email verification and password reset."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from recruitment.core.exceptions import AuthenticationError, OTPExpiredError
from recruitment.models import User

OTP_LENGTH = 6


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Return a cryptographically random, zero-padded numeric code."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps (as returned by SQLite) as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def issue_otp(user: User, ttl: timedelta, now: Optional[datetime] = None) -> str:
    """Store a fresh code and expiry on the user, replacing any previous one."""
    now = now or datetime.now(timezone.utc)
    code = generate_otp()
    user.reset_token = code
    user.reset_token_expires_at = now + ttl
    return code


def check_otp(user: User, code: str, now: Optional[datetime] = None) -> None:
    """
    Validate ``code`` against the code stored on ``user``.

    Expiry is checked before the code itself, so an expired code is reported
    as expired whether or not it matches.

    Raises:
        OTPExpiredError: The stored code is past its expiry.
        AuthenticationError: No code is pending or the code does not match.
    """
    now = now or datetime.now(timezone.utc)
    if user.reset_token is None or user.reset_token_expires_at is None:
        raise AuthenticationError("Invalid OTP")
    if now > as_utc(user.reset_token_expires_at):
        raise OTPExpiredError()
    if not secrets.compare_digest(user.reset_token.encode(), code.encode()):
        raise AuthenticationError("Invalid OTP")


def clear_otp(user: User) -> None:
    user.reset_token = None
    user.reset_token_expires_at = None


def format_duration(duration: timedelta) -> str:
    """Render a duration as "1 hour", "2 hours", "10 minutes" or "1 minute"."""
    seconds = int(duration.total_seconds())
    if seconds >= 3600:
        hours = seconds // 3600
        return "1 hour" if hours == 1 else f"{hours} hours"
    minutes = seconds // 60
    return "1 minute" if minutes == 1 else f"{minutes} minutes"
