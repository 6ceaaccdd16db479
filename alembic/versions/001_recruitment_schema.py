"""Initial recruitment schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all tables for the recruitment backend:
- users: Accounts, roles, verification codes and withdrawal flag
- questions: Department question bank
- applications: One application per (user, department)
- answers: One answer per (application, question)
- reviews: One verdict per (application, reviewer)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# Revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEPARTMENTS = ("technical", "management", "social_media", "design")
ROLES = ("applicant", "evaluator", "admin", "super_admin")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    """Create initial database schema."""

    department = postgresql.ENUM(*DEPARTMENTS, name="department", create_type=False)
    user_role = postgresql.ENUM(*ROLES, name="user_role", create_type=False)
    department.create(op.get_bind(), checkfirst=True)
    user_role.create(op.get_bind(), checkfirst=True)

    # ==========================================================================
    # Create users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("reg_num", sa.String(50), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="applicant"),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("reset_token", sa.String(16), nullable=True),
        sa.Column("reset_token_expires_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("department", department, nullable=True),
        sa.Column("chickened_out", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ==========================================================================
    # Create questions table
    # ==========================================================================
    op.create_table(
        "questions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("department", department, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_questions_department", "questions", ["department"])

    # ==========================================================================
    # Create applications table
    # ==========================================================================
    op.create_table(
        "applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("department", department, nullable=False),
        sa.Column("submitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("chickened_out", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "department", name="uq_applications_user_department"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index(
        "ix_applications_department_submitted",
        "applications",
        ["department", "submitted"],
    )

    # ==========================================================================
    # Create answers table
    # ==========================================================================
    op.create_table(
        "answers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "application_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("body", sa.Text(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("application_id", "question_id", name="uq_answers_application_question"),
    )
    op.create_index("ix_answers_application_id", "answers", ["application_id"])
    op.create_index("ix_answers_user_id", "answers", ["user_id"])

    # ==========================================================================
    # Create reviews table
    # ==========================================================================
    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "application_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reviewer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("department", department, nullable=False),
        sa.Column("shortlisted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("comments", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("application_id", "reviewer_id", name="uq_reviews_application_reviewer"),
    )
    op.create_index("ix_reviews_application_id", "reviews", ["application_id"])
    op.create_index("ix_reviews_reviewer_id", "reviews", ["reviewer_id"])


def downgrade() -> None:
    """Drop all tables and enum types."""

    # Drop tables in reverse order of creation (due to foreign keys)
    op.drop_table("reviews")
    op.drop_table("answers")
    op.drop_table("applications")
    op.drop_table("questions")
    op.drop_table("users")

    postgresql.ENUM(name="user_role").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="department").drop(op.get_bind(), checkfirst=True)
