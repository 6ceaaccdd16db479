"""
Tests for password hashing and session tokens.
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from recruitment.core.config import settings
from recruitment.core.exceptions import AuthenticationError
from recruitment.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    refresh_access_token,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_verifies(self):
        hashed = get_password_hash("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_hashes_are_salted(self):
        assert get_password_hash("same") != get_password_hash("same")

    def test_malformed_hash_never_verifies(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAccessTokens:
    def test_round_trip_carries_identity(self):
        user_id = uuid.uuid4()
        token = create_access_token(user_id, "a@university.edu", "evaluator")

        claims = decode_token(token)

        assert claims.user_id == user_id
        assert claims.email == "a@university.edu"
        assert claims.role == "evaluator"
        assert claims.raw["iss"] == settings.jwt_issuer
        assert claims.raw["sub"] == str(user_id)

    def test_default_expiry_follows_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "jwt_expiry_minutes", 60)
        claims = decode_token(create_access_token(uuid.uuid4(), "a@university.edu", "applicant"))

        lifetime = claims.expires_at - claims.issued_at
        assert timedelta(minutes=59) <= lifetime <= timedelta(minutes=61)

    def test_expiry_is_at_least_one_minute(self):
        token = create_access_token(
            uuid.uuid4(), "a@university.edu", "applicant", expires_delta=timedelta(seconds=0)
        )

        claims = decode_token(token)
        assert claims.expires_at - claims.issued_at >= timedelta(minutes=1)

    def test_expired_token_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "email": "a@university.edu",
                "role": "applicant",
                "iss": settings.jwt_issuer,
                "iat": now - timedelta(hours=2),
                "exp": now - timedelta(hours=1),
            },
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "email": "a@university.edu", "iss": settings.jwt_issuer},
            "another-secret-entirely-another-secret",
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_wrong_issuer_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "email": "a@university.edu",
                "iss": "someone-else",
                "iat": now,
                "exp": now + timedelta(hours=1),
            },
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_token("not.a.token")

    def test_refresh_keeps_identity_and_role(self):
        user_id = uuid.uuid4()
        original = create_access_token(user_id, "a@university.edu", "admin")

        refreshed = decode_token(refresh_access_token(original))

        assert refreshed.user_id == user_id
        assert refreshed.role == "admin"

    def test_refresh_requires_valid_token(self):
        with pytest.raises(AuthenticationError):
            refresh_access_token("invalid")
