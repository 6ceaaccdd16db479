"""
Sentry Error Tracking Configuration
Optional Sentry SDK initialization; a no-op when SENTRY_DSN is unset.
"""

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from recruitment.core.config import settings

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = ("authorization", "cookie")
SENSITIVE_BODY_FIELDS = ("password", "new_password", "otp", "code", "token")


def before_send(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """Drop health check noise and redact credentials before events leave the process."""
    request = event.get("request")
    if not request:
        return event

    if request.get("url", "").endswith("/health"):
        return None

    headers = request.get("headers") or {}
    for header in list(headers):
        if header.lower() in SENSITIVE_HEADERS:
            headers[header] = "[REDACTED]"

    data = request.get("data")
    if isinstance(data, dict):
        for key in SENSITIVE_BODY_FIELDS:
            if key in data:
                data[key] = "[REDACTED]"

    return event


def init_sentry() -> bool:
    """
    Initialize Sentry SDK with FastAPI integration.

    Returns:
        bool: True if Sentry was initialized, False when no DSN is configured.
    """
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment or settings.environment,
        release=f"recruitment-backend@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            StarletteIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            SqlalchemyIntegration(),
        ],
        before_send=before_send,
        send_default_pii=False,
        attach_stacktrace=True,
    )
    sentry_sdk.set_tag("service", "recruitment-backend")
    logger.info(f"Sentry initialized (env={settings.sentry_environment or settings.environment})")
    return True


def capture_exception(
    error: Exception,
    user_id: str | None = None,
    extra: dict[str, Any] | None = None,
) -> str | None:
    """
    Capture an exception and send to Sentry.

    Returns:
        Event ID if captured, None otherwise
    """
    with sentry_sdk.new_scope() as scope:
        if user_id:
            scope.set_user({"id": user_id})

        for key, value in (extra or {}).items():
            scope.set_extra(key, value)

        return sentry_sdk.capture_exception(error)
