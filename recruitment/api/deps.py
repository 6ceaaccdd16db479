"""
FastAPI Dependencies
Shared dependencies for authentication, role checks, database sessions and mail.
"""
import logging
from typing import Annotated, Callable, Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.exceptions import AuthenticationError, ServiceUnavailableError
from recruitment.core.roles import (
    ADMIN_OR_ABOVE,
    APPLICANT_ONLY,
    EVALUATOR_OR_ABOVE,
    SUPER_ADMIN_ONLY,
    AuthContext,
)
from recruitment.core.security import decode_token
from recruitment.database import get_db
from recruitment.models import UserRole
from recruitment.services.mailer import Mailer

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# =============================================================================
# Database and Mail
# =============================================================================

AsyncSessionDep = Annotated[AsyncSession, Depends(get_db)]


def get_mailer(request: Request) -> Mailer:
    mailer = getattr(request.app.state, "mailer", None)
    if mailer is None:
        raise ServiceUnavailableError("Email service is not running")
    return mailer


MailerDep = Annotated[Mailer, Depends(get_mailer)]


# =============================================================================
# Authentication
# =============================================================================


def get_bearer_token(request: Request) -> str:
    """Extract the token from ``Authorization: Bearer <token>``."""
    header = request.headers.get("Authorization")
    if not header:
        raise AuthenticationError("Authorization header is required")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid authorization header format. Use: Bearer <token>")
    return token.strip()


async def get_auth_context(
    request: Request,
    # Declared so the OpenAPI schema advertises bearer auth
    _credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)] = None,
) -> AuthContext:
    """
    Validate the bearer token and build the caller's context.

    Raises 401 for a missing, malformed, invalid or expired token.
    """
    claims = decode_token(get_bearer_token(request))
    context = AuthContext(
        user_id=claims.user_id,
        email=claims.email,
        role_claim=claims.role,
        claims=claims.raw,
    )
    request.state.user_id = str(claims.user_id)
    return context


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]


# =============================================================================
# Role Policy
# =============================================================================


def require_roles(allowed: Iterable[UserRole]) -> Callable:
    """
    Dependency factory enforcing an explicit role allow-set.

    Usage:
        @router.get("", dependencies=[Depends(require_roles(ADMIN_OR_ABOVE))])
    """
    allowed = frozenset(allowed)

    async def dependency(auth: CurrentAuth) -> AuthContext:
        auth.require(allowed)
        return auth

    return dependency


SuperAdminAuth = Annotated[AuthContext, Depends(require_roles(SUPER_ADMIN_ONLY))]
AdminAuth = Annotated[AuthContext, Depends(require_roles(ADMIN_OR_ABOVE))]
EvaluatorAuth = Annotated[AuthContext, Depends(require_roles(EVALUATOR_OR_ABOVE))]
ApplicantAuth = Annotated[AuthContext, Depends(require_roles(APPLICANT_ONLY))]
