"""
Recruitment Database Models
SQLAlchemy ORM models for applicants, applications, answers, questions and reviews.
"""
import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class UserRole(str, enum.Enum):
    """Closed set of roles a user can hold."""

    APPLICANT = "applicant"
    EVALUATOR = "evaluator"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Department(str, enum.Enum):
    """Departments an applicant can apply to and questions belong to."""

    TECHNICAL = "technical"
    MANAGEMENT = "management"
    SOCIAL_MEDIA = "social_media"
    DESIGN = "design"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Shared so PostgreSQL creates a single enum type for every department column
department_enum = Enum(Department, name="department", values_callable=_enum_values)
user_role_enum = Enum(UserRole, name="user_role", values_callable=_enum_values)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )


class User(TimestampMixin, Base):
    """
    Registered account.

    Applicants register themselves and start unverified; privileged accounts
    are created by admins or seeded at startup. ``department`` scopes an
    evaluator's review queue.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    reg_num: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        user_role_enum,
        nullable=False,
        default=UserRole.APPLICANT,
    )
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    # Pending verification or password-reset code, cleared once consumed
    reset_token: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    reset_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    department: Mapped[Optional[Department]] = mapped_column(
        department_enum,
        nullable=True,
    )
    chickened_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    applications: Mapped[List["Application"]] = relationship(
        "Application",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class Question(TimestampMixin, Base):
    """Department-scoped prompt that applicants answer."""

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    department: Mapped[Department] = mapped_column(
        department_enum,
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)


class Application(TimestampMixin, Base):
    """A user's application to one department. One per (user, department)."""

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    department: Mapped[Department] = mapped_column(
        department_enum,
        nullable=False,
    )
    submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    chickened_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped["User"] = relationship("User", back_populates="applications")
    answers: Mapped[List["Answer"]] = relationship(
        "Answer",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "department", name="uq_applications_user_department"),
        Index("ix_applications_department_submitted", "department", "submitted"),
    )


class Answer(TimestampMixin, Base):
    """An applicant's answer to one question within one application."""

    __tablename__ = "answers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    application: Mapped["Application"] = relationship("Application", back_populates="answers")

    __table_args__ = (
        UniqueConstraint("application_id", "question_id", name="uq_answers_application_question"),
    )


class Review(TimestampMixin, Base):
    """An evaluator's verdict on a submitted application in their department."""

    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    department: Mapped[Department] = mapped_column(
        department_enum,
        nullable=False,
    )
    shortlisted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("application_id", "reviewer_id", name="uq_reviews_application_reviewer"),
    )
