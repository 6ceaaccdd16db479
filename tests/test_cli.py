"""Tests for the command line entry point."""
import base64

import pytest

from recruitment import cli
from recruitment.core.security import verify_password


def test_hash_password_prints_verifiable_hash(capsys):
    assert cli.main(["hash-password", "mypassword123"]) == 0

    out = capsys.readouterr().out
    hashed = next(line.split(": ", 1)[1] for line in out.splitlines() if line.startswith("Bcrypt hash:"))
    assert verify_password("mypassword123", hashed)
    assert "Cost factor: 12" in out


def test_hash_password_rejects_empty(capsys):
    assert cli.main(["hash-password", ""]) == 1
    assert "cannot be empty" in capsys.readouterr().err


def test_generate_jwt_secret(capsys):
    assert cli.main(["generate-jwt-secret"]) == 0

    out = capsys.readouterr().out
    secret = next(line.split("=", 1)[1] for line in out.splitlines() if line.startswith("JWT_SECRET="))
    assert len(base64.urlsafe_b64decode(secret)) == cli.JWT_SECRET_BYTES


def test_health_check_passes(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(cli.settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'health.db'}")

    assert cli.main(["health-check"]) == 0
    assert "Health check passed" in capsys.readouterr().out


def test_health_check_fails(monkeypatch, capsys):
    async def unreachable(timeout=cli.HEALTH_CHECK_TIMEOUT_SECONDS):
        return False

    monkeypatch.setattr(cli, "check_database", unreachable)

    assert cli.main(["health-check"]) == 1
    assert "failed" in capsys.readouterr().err


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.main([])
