"""User account service: lookups, admin-managed accounts and role changes."""

from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from recruitment.core.roles import ADMIN_OR_ABOVE, EVALUATOR_OR_ABOVE
from recruitment.core.security import get_password_hash
from recruitment.models import Department, User, UserRole
from recruitment.schemas.users import UserCreateRequest

logger = structlog.get_logger(__name__)

# Roles an admin may hand out; anything else needs a super admin
ADMIN_ASSIGNABLE_ROLES = frozenset({UserRole.APPLICANT, UserRole.EVALUATOR})


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Service for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User:
        user = await self.find_by_email(email)
        if user is None:
            raise NotFoundError("User")
        return user

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def add_user(self, user: User) -> User:
        """
        Insert a new user, translating an email collision into ``ConflictError``.

        Runs in a savepoint so a collision leaves the outer transaction usable.
        """
        if await self.find_by_email(user.email) is not None:
            raise ConflictError("Email already exists")
        try:
            async with self.db.begin_nested():
                self.db.add(user)
        except IntegrityError:
            raise ConflictError("Email already exists")
        return user

    async def create_user(self, data: UserCreateRequest, actor_role: UserRole) -> User:
        """Create a pre-verified account on behalf of an admin."""
        if data.role not in ADMIN_ASSIGNABLE_ROLES and actor_role != UserRole.SUPER_ADMIN:
            raise AuthorizationError("Only a super admin can create admin accounts")
        if data.department is not None and data.role not in EVALUATOR_OR_ABOVE:
            raise ValidationError("Only evaluators and admins can be assigned a review department")

        user = User(
            full_name=data.full_name.strip(),
            email=normalize_email(data.email),
            reg_num=data.reg_num,
            role=data.role,
            department=data.department,
            verified=True,
            hashed_password=get_password_hash(data.password),
        )
        await self.add_user(user)
        logger.info("user_created", user_id=str(user.id), role=user.role.value)
        return user

    async def delete_user(self, user_id: UUID, actor_id: UUID, actor_role: UserRole) -> None:
        if user_id == actor_id:
            raise ValidationError("You cannot delete your own account")
        user = await self.get_user(user_id)
        if user.role in ADMIN_OR_ABOVE and actor_role != UserRole.SUPER_ADMIN:
            raise AuthorizationError("Only a super admin can delete admin accounts")
        await self.db.delete(user)
        await self.db.flush()
        logger.info("user_deleted", user_id=str(user_id), actor_id=str(actor_id))

    async def update_role(
        self,
        user_id: UUID,
        role: UserRole,
        department: Optional[Department] = None,
    ) -> User:
        user = await self.get_user(user_id)
        if department is not None and role not in EVALUATOR_OR_ABOVE:
            raise ValidationError("Only evaluators and admins can be assigned a review department")
        user.role = role
        # Applicants have no review department
        user.department = department if role in EVALUATOR_OR_ABOVE else None
        await self.db.flush()
        logger.info("user_role_updated", user_id=str(user_id), role=role.value)
        return user

    async def set_verified(self, user_id: UUID, verified: bool) -> User:
        user = await self.get_user(user_id)
        user.verified = verified
        if verified:
            user.reset_token = None
            user.reset_token_expires_at = None
        await self.db.flush()
        logger.info("user_verification_updated", user_id=str(user_id), verified=verified)
        return user

    async def ensure_super_admin(self, email: str, password: str, full_name: str) -> Optional[User]:
        """Create the bootstrap super admin unless an account with ``email`` already exists."""
        if await self.find_by_email(email) is not None:
            return None
        user = User(
            full_name=full_name,
            email=normalize_email(email),
            role=UserRole.SUPER_ADMIN,
            verified=True,
            hashed_password=get_password_hash(password),
        )
        await self.add_user(user)
        logger.info("bootstrap_admin_created", user_id=str(user.id))
        return user
