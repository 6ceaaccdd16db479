"""
Account authentication flows: registration, email verification, login and
password reset. Codes are delivered through the mail dispatcher.
"""

from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.config import settings
from recruitment.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from recruitment.core.security import create_access_token, get_password_hash, verify_password
from recruitment.models import User, UserRole
from recruitment.schemas.auth import RegisterRequest
from recruitment.services.email_templates import EmailTemplateRenderer, email_templates
from recruitment.services.mailer import Mailer
from recruitment.services.otp import check_otp, clear_otp, issue_otp
from recruitment.services.users import UserService, normalize_email

logger = structlog.get_logger(__name__)

# Compared against when the email is unknown so both paths pay for a bcrypt check
_DUMMY_HASH = get_password_hash("dummy-password-for-timing")


def check_email_domain(email: str) -> None:
    domains = settings.email_domains
    if not domains:
        return
    domain = email.rsplit("@", 1)[-1].lower()
    if domain not in domains:
        raise ValidationError(
            "Email domain is not allowed",
            details={"allowed_domains": domains},
        )


def issue_session_token(user: User) -> str:
    return create_access_token(user_id=user.id, email=user.email, role=user.role.value)


class AuthService:
    """Registration, verification, login and password reset."""

    def __init__(
        self,
        db: AsyncSession,
        mailer: Mailer,
        templates: Optional[EmailTemplateRenderer] = None,
    ):
        self.db = db
        self.mailer = mailer
        self.templates = templates or email_templates
        self.users = UserService(db)

    @property
    def verification_ttl(self) -> timedelta:
        return timedelta(minutes=settings.otp_expiry_minutes)

    @property
    def reset_ttl(self) -> timedelta:
        return timedelta(minutes=settings.password_reset_expiry_minutes)

    async def register(self, data: RegisterRequest) -> User:
        """
        Create an unverified applicant and mail a verification code.

        The row is flushed before the mail is queued, so a duplicate email
        fails first; if queueing fails the request's transaction rolls back.
        """
        email = normalize_email(data.email)
        check_email_domain(email)

        user = User(
            full_name=data.full_name.strip(),
            email=email,
            reg_num=data.reg_num.strip(),
            role=UserRole.APPLICANT,
            verified=False,
            hashed_password=get_password_hash(data.password),
        )
        otp = issue_otp(user, self.verification_ttl)
        await self.users.add_user(user)

        await self.mailer.enqueue(
            self.templates.verification(user.email, user.full_name, otp, self.verification_ttl)
        )
        logger.info("user_registered", user_id=str(user.id))
        return user

    async def verify_otp(self, email: str, otp: str) -> tuple[User, str]:
        user = await self.users.get_user_by_email(email)
        if user.verified:
            raise ValidationError("User is already verified")

        check_otp(user, otp)
        user.verified = True
        clear_otp(user)
        await self.db.flush()

        logger.info("user_verified", user_id=str(user.id))
        return user, issue_session_token(user)

    async def resend_otp(self, email: str) -> None:
        user = await self.users.get_user_by_email(email)
        if user.verified:
            raise ValidationError("User is already verified")

        otp = issue_otp(user, self.verification_ttl)
        await self.db.flush()
        await self.mailer.enqueue(
            self.templates.resend_verification(user.email, user.full_name, otp, self.verification_ttl)
        )
        logger.info("verification_code_resent", user_id=str(user.id))

    async def login(self, email: str, password: str) -> tuple[User, str]:
        user = await self.users.find_by_email(email)
        if user is None:
            verify_password(password, _DUMMY_HASH)
            raise AuthenticationError("Invalid email or password")
        if not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid email or password")
        if not user.verified:
            raise AuthorizationError("User email is not verified")

        logger.info("user_logged_in", user_id=str(user.id))
        return user, issue_session_token(user)

    async def forgot_password(self, email: str) -> None:
        """Mail a reset code. Unknown emails are silently ignored."""
        user = await self.users.find_by_email(email)
        if user is None:
            logger.info("password_reset_unknown_email")
            return

        otp = issue_otp(user, self.reset_ttl)
        await self.db.flush()
        await self.mailer.enqueue(
            self.templates.password_reset(user.email, user.full_name, otp, self.reset_ttl)
        )
        logger.info("password_reset_requested", user_id=str(user.id))

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        user = await self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("User")

        check_otp(user, otp)
        user.hashed_password = get_password_hash(new_password)
        clear_otp(user)
        # Receiving the code proves ownership of the address
        user.verified = True
        await self.db.flush()

        await self.mailer.enqueue(self.templates.password_reset_success(user.email, user.full_name))
        logger.info("password_reset_completed", user_id=str(user.id))
