"""
Identity and role policy.

Authorization is expressed as explicit allow-sets. Roles are never
compared by rank: an operation lists exactly which roles may call it.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional
from uuid import UUID

from recruitment.core.exceptions import AuthorizationError, RoleFormatError
from recruitment.models import UserRole

SUPER_ADMIN_ONLY: frozenset[UserRole] = frozenset({UserRole.SUPER_ADMIN})
ADMIN_OR_ABOVE: frozenset[UserRole] = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})
EVALUATOR_OR_ABOVE: frozenset[UserRole] = frozenset(
    {UserRole.EVALUATOR, UserRole.ADMIN, UserRole.SUPER_ADMIN}
)
APPLICANT_ONLY: frozenset[UserRole] = frozenset({UserRole.APPLICANT})


def parse_role(value: Any) -> UserRole:
    """Parse a role claim, raising ``RoleFormatError`` for anything outside the enumeration."""
    if isinstance(value, UserRole):
        return value
    if not isinstance(value, str):
        raise RoleFormatError()
    try:
        return UserRole(value)
    except ValueError:
        raise RoleFormatError()


def role_allowed(role: UserRole, allowed: Iterable[UserRole]) -> bool:
    return role in allowed


@dataclass(frozen=True)
class AuthContext:
    """Authenticated caller, produced once per request by the auth dependency."""

    user_id: UUID
    email: str
    role_claim: Optional[Any] = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def role(self) -> UserRole:
        """The caller's role. A missing or unknown role claim is an internal error."""
        return parse_role(self.role_claim)

    def require(self, allowed: Iterable[UserRole]) -> UserRole:
        role = self.role
        if not role_allowed(role, allowed):
            raise AuthorizationError("Insufficient permissions")
        return role

    def has_role(self, allowed: Iterable[UserRole]) -> bool:
        return role_allowed(self.role, allowed)
