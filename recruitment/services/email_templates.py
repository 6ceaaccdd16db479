"""
Email Templates
Jinja2 rendering of the account emails (verification, password reset).
"""
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from recruitment.core.config import settings
from recruitment.services.otp import format_duration

TEMPLATES_DIR = Path(__file__).parent.parent / "templates" / "email"


@dataclass(frozen=True)
class EmailMessage:
    """A rendered HTML email ready for delivery."""

    to: tuple[str, ...]
    subject: str
    html_body: str


class EmailTemplateRenderer:
    """Renders the account emails from the templates directory."""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self._env: Optional[Environment] = None
        self._templates_dir = templates_dir

    @property
    def env(self) -> Environment:
        if self._env is None:
            self._env = Environment(
                loader=FileSystemLoader(str(self._templates_dir)),
                autoescape=select_autoescape(["html"]),
                trim_blocks=True,
                lstrip_blocks=True,
            )
        return self._env

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        template = self.env.get_template(template_name)
        return template.render(app_name=settings.app_name, **context)

    def verification(self, to: str, full_name: str, otp: str, ttl: timedelta) -> EmailMessage:
        body = self.render(
            "verification.html",
            {"full_name": full_name, "otp": otp, "duration": format_duration(ttl)},
        )
        return EmailMessage((to,), settings.email_verification_subject, body)

    def resend_verification(self, to: str, full_name: str, otp: str, ttl: timedelta) -> EmailMessage:
        body = self.render(
            "resend_verification.html",
            {"full_name": full_name, "otp": otp, "duration": format_duration(ttl)},
        )
        return EmailMessage((to,), settings.email_resend_verification_subject, body)

    def password_reset(self, to: str, full_name: str, otp: str, ttl: timedelta) -> EmailMessage:
        body = self.render(
            "password_reset.html",
            {"full_name": full_name, "otp": otp, "duration": format_duration(ttl)},
        )
        return EmailMessage((to,), settings.email_password_reset_subject, body)

    def password_reset_success(self, to: str, full_name: str) -> EmailMessage:
        body = self.render("password_reset_success.html", {"full_name": full_name})
        return EmailMessage((to,), settings.email_password_reset_success_subject, body)


email_templates = EmailTemplateRenderer()
