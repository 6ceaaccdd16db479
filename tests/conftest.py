"""
Recruitment Test Configuration and Fixtures
Shared pytest fixtures for all test modules.
"""
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from recruitment.core import rate_limit
from recruitment.core.config import settings
from recruitment.database import Database
from recruitment.main import create_app
from recruitment.models import Application, Department, Question, User, UserRole
from tests.fixtures.factories import TEST_JWT_SECRET, TEST_PASSWORD_HASH, RecordingMailer


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic settings and a fresh rate limiter for every test."""
    monkeypatch.setattr(settings, "jwt_secret", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "environment", "testing")
    monkeypatch.setattr(settings, "debug", False)
    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    monkeypatch.setattr(settings, "redis_url", None)
    monkeypatch.setattr(settings, "allowed_email_domains", "")
    monkeypatch.setattr(settings, "max_applications_per_user", 2)
    monkeypatch.setattr(settings, "admin_email", None)
    monkeypatch.setattr(settings, "admin_password", None)
    monkeypatch.setattr(settings, "sentry_dsn", None)
    monkeypatch.setattr(rate_limit, "_rate_limiter", None)
    monkeypatch.setattr(rate_limit, "_fallback_limiter", None)
    monkeypatch.setattr(rate_limit, "_redis_available", True)
    return settings


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """A fresh SQLite database file per test for complete isolation."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'recruitment.db'}")
    await db.create_all()
    yield db
    await db.dispose()


# =============================================================================
# Application and Client
# =============================================================================


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def app(database, mailer) -> FastAPI:
    return create_app(database=database, mailer=mailer)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_user(database):
    """Create and commit a user. Emails are unique per call unless given."""
    counter = {"n": 0}

    async def _make(
        role: UserRole = UserRole.APPLICANT,
        email: Optional[str] = None,
        department: Optional[Department] = None,
        verified: bool = True,
        full_name: str = "Test User",
        reg_num: Optional[str] = "21BCE0001",
    ) -> User:
        counter["n"] += 1
        user = User(
            full_name=full_name,
            email=email or f"{role.value}{counter['n']}@university.edu",
            reg_num=reg_num,
            role=role,
            department=department,
            verified=verified,
            hashed_password=TEST_PASSWORD_HASH,
        )
        async with database.session() as session:
            session.add(user)
        return user

    return _make


@pytest.fixture
def make_question(database):
    async def _make(department: Department = Department.TECHNICAL, title: str = "Why us?") -> Question:
        question = Question(department=department, title=title, body=f"{title} Explain in detail.")
        async with database.session() as session:
            session.add(question)
        return question

    return _make


@pytest.fixture
def make_application(database):
    async def _make(
        user: User,
        department: Department = Department.TECHNICAL,
        submitted: bool = False,
        chickened_out: bool = False,
    ) -> Application:
        application = Application(
            user_id=user.id,
            department=department,
            submitted=submitted,
            chickened_out=chickened_out,
        )
        async with database.session() as session:
            session.add(application)
        return application

    return _make


@pytest_asyncio.fixture
async def applicant(make_user) -> User:
    return await make_user(UserRole.APPLICANT, email="applicant@university.edu", full_name="Alice Applicant")


@pytest_asyncio.fixture
async def evaluator(make_user) -> User:
    return await make_user(
        UserRole.EVALUATOR,
        email="evaluator@university.edu",
        department=Department.TECHNICAL,
        full_name="Eve Evaluator",
    )


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN, email="admin@university.edu", full_name="Adam Admin")


@pytest_asyncio.fixture
async def super_admin(make_user) -> User:
    return await make_user(UserRole.SUPER_ADMIN, email="root@university.edu", full_name="Sue Super")
