"""
Tests for startup checks: security settings validation, bootstrap admin
seeding and the application lifespan.
"""
import pytest
from sqlalchemy import func, select

from recruitment.core.config import settings
from recruitment.main import create_app, lifespan, seed_bootstrap_admin, validate_security_settings
from recruitment.models import User, UserRole

SECURE_SECRET = "x" * 48


@pytest.fixture
def production(monkeypatch):
    """Settings that pass validation in production."""
    monkeypatch.setattr(settings, "environment", "production")
    monkeypatch.setattr(settings, "jwt_secret", SECURE_SECRET)
    monkeypatch.setattr(settings, "debug", False)
    monkeypatch.setattr(settings, "cors_allowed_origins", "https://recruit.example.com")
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_from_email", "noreply@example.com")
    return settings


class TestValidateSecuritySettings:
    def test_secure_production_config_passes(self, production):
        validate_security_settings()

    @pytest.mark.parametrize(
        "field,value,message",
        [
            ("jwt_secret", "changeme", "JWT_SECRET"),
            ("jwt_secret", "too-short", "JWT_SECRET"),
            ("debug", True, "DEBUG"),
            ("cors_allowed_origins", "*", "CORS_ALLOWED_ORIGINS"),
            ("smtp_host", "", "SMTP_HOST"),
        ],
    )
    def test_insecure_production_config_refuses_to_start(self, production, monkeypatch, field, value, message):
        monkeypatch.setattr(settings, field, value)

        with pytest.raises(RuntimeError, match=message):
            validate_security_settings()

    def test_development_only_warns(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")
        monkeypatch.setattr(settings, "jwt_secret", "changeme")
        monkeypatch.setattr(settings, "smtp_host", "")

        validate_security_settings()


@pytest.mark.asyncio
class TestBootstrapAdmin:
    async def count_users(self, database) -> int:
        async with database.session() as session:
            return await session.scalar(select(func.count(User.id)))

    async def test_not_configured_creates_nothing(self, database):
        await seed_bootstrap_admin(database)

        assert await self.count_users(database) == 0

    async def test_creates_super_admin_once(self, database, monkeypatch):
        monkeypatch.setattr(settings, "admin_email", "Root@University.edu")
        monkeypatch.setattr(settings, "admin_password", "bootstrap-pass")

        await seed_bootstrap_admin(database)
        await seed_bootstrap_admin(database)

        async with database.session() as session:
            users = (await session.execute(select(User))).scalars().all()
        assert len(users) == 1
        assert users[0].email == "root@university.edu"
        assert users[0].role is UserRole.SUPER_ADMIN
        assert users[0].verified is True


@pytest.mark.asyncio
class TestLifespan:
    async def test_injected_resources_are_left_open(self, database, mailer):
        app = create_app(database=database, mailer=mailer)

        async with lifespan(app):
            assert app.state.database is database
            assert app.state.mailer is mailer

        assert app.state.database is database
        await database.ping(timeout=1.0)

    async def test_unreachable_database_aborts_startup(self, database, mailer, monkeypatch):
        async def broken_ping(timeout):
            raise OSError("connection refused")

        monkeypatch.setattr(database, "ping", broken_ping)
        app = create_app(database=database, mailer=mailer)

        with pytest.raises(RuntimeError, match="reachable database"):
            async with lifespan(app):
                pass

    async def test_starts_own_mail_dispatcher(self, database):
        app = create_app(database=database)

        async with lifespan(app):
            assert app.state.mailer.running

        assert app.state.mailer is None
