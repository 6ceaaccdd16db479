"""
Logging setup shared by the API process and the CLI.

Stdlib logging carries everything; structlog loggers render key/value
events as JSON through the same handlers.
"""
import logging

import structlog

from recruitment.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: int | None = None) -> None:
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
