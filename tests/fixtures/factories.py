"""
Test Helpers
Mailer double, token headers and route helpers shared by the test modules.
"""
from typing import Optional

from recruitment.core.config import settings
from recruitment.core.exceptions import ServiceUnavailableError
from recruitment.core.security import create_access_token, get_password_hash
from recruitment.models import User
from recruitment.services.email_templates import EmailMessage

TEST_PASSWORD = "password123"
# Hashed once; bcrypt is deliberately slow
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)
TEST_JWT_SECRET = "test-jwt-secret-with-at-least-thirty-two-characters"


class RecordingMailer:
    """Mailer double that keeps every queued message."""

    def __init__(self):
        self.messages: list[EmailMessage] = []
        self.unavailable = False

    async def enqueue(self, message: EmailMessage) -> None:
        if self.unavailable:
            raise ServiceUnavailableError("Email service is busy, please try again shortly")
        self.messages.append(message)

    def sent_to(self, email: str) -> list[EmailMessage]:
        return [m for m in self.messages if email in m.to]


def api(path: str) -> str:
    """Prefix a route with the versioned API prefix."""
    return f"{settings.api_prefix}{path}"


def auth_headers(user: User, role: Optional[str] = None) -> dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email, role=role or user.role.value)
    return {"Authorization": f"Bearer {token}"}
