"""
Custom Exception Classes for the Recruitment API.

Provides standardized HTTP exceptions with consistent error messages
across all API endpoints. Every exception renders as
``{"error": <message>, "details": <optional>}``.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class APIError(HTTPException):
    """Base class carrying optional structured details for the error body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.details = details


class ValidationError(APIError):
    """Exception raised when request validation fails."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, details)


class AuthenticationError(APIError):
    """Exception raised when a caller cannot be authenticated."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class OTPExpiredError(AuthenticationError):
    """Exception raised when a one-time code is past its expiry."""

    def __init__(self, message: str = "OTP has expired"):
        super().__init__(message)


class AuthorizationError(APIError):
    """Exception raised when a user is not authorized to access a resource."""

    def __init__(
        self,
        message: str = "Not authorized to access this resource",
        details: Optional[Any] = None,
    ):
        super().__init__(status.HTTP_403_FORBIDDEN, message, details)


class NotFoundError(APIError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource: str, id: Any = None, message: Optional[str] = None):
        detail = message or f"{resource} not found" + (f": {id}" if id else "")
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ConflictError(APIError):
    """Exception raised when a resource conflict occurs (e.g., duplicate)."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(status.HTTP_409_CONFLICT, message, details)


class RateLimitError(APIError):
    """Exception raised when rate limit is exceeded."""

    def __init__(
        self,
        retry_after: int,
        headers: Optional[dict[str, str]] = None,
        message: Optional[str] = None,
    ):
        headers = dict(headers or {})
        headers.setdefault("Retry-After", str(retry_after))
        super().__init__(
            status.HTTP_429_TOO_MANY_REQUESTS,
            message or f"Too many requests. Please retry after {retry_after} seconds.",
            details={"retry_after": retry_after},
            headers=headers,
        )
        self.retry_after = retry_after


class InternalError(APIError):
    """Exception raised when a collaborator (database, mail transport) fails."""

    def __init__(self, message: str = "Internal server error", details: Optional[Any] = None):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message, details)


class RoleFormatError(InternalError):
    """Authenticated context is missing a usable role claim."""

    def __init__(self, message: str = "Invalid user role format"):
        super().__init__(message)


class ServiceUnavailableError(APIError):
    """Exception raised when a dependency is temporarily unable to take work."""

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, message)
