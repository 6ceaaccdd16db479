"""
Recruitment Backend FastAPI Application
Main entry point for the recruitment API.
"""

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from recruitment.api import admin, answers, applications, auth, health, questions, reviewer, users
from recruitment.core.config import INSECURE_SECRETS, settings
from recruitment.core.exceptions import APIError
from recruitment.core.logging_config import configure_logging
from recruitment.core.rate_limit import RateLimitMiddleware, close_rate_limiter
from recruitment.core.sentry import capture_exception, init_sentry
from recruitment.database import Database
from recruitment.services.mailer import MailDispatcher, Mailer
from recruitment.services.users import UserService

# =============================================================================
# Logging Configuration
# =============================================================================

configure_logging()
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


# =============================================================================
# Lifespan Events
# =============================================================================


def validate_security_settings() -> None:
    """
    Validate critical security settings at startup.
    Raises RuntimeError if insecure configuration detected in production.
    """
    warnings = []
    errors = []

    if settings.jwt_secret in INSECURE_SECRETS or len(settings.jwt_secret.encode()) < 32:
        msg = "JWT_SECRET is insecure or too short (minimum 32 characters required)"
        if settings.is_production:
            errors.append(msg)
        else:
            warnings.append(msg)

    if settings.is_production and settings.debug:
        errors.append("DEBUG mode must be disabled in production (set DEBUG=false)")

    origins = settings.cors_origins
    if settings.is_production and (not origins or "*" in origins):
        errors.append("CORS_ALLOWED_ORIGINS must list explicit origins in production")

    if not settings.mail_enabled:
        msg = "SMTP_HOST and SMTP_FROM_EMAIL are not set - outgoing mail is only logged"
        if settings.is_production:
            errors.append(msg)
        else:
            warnings.append(msg)

    for warning in warnings:
        logger.warning(f"SECURITY WARNING: {warning}")

    if errors:
        for error in errors:
            logger.error(f"SECURITY ERROR: {error}")
        raise RuntimeError(f"Cannot start in production with insecure configuration: {'; '.join(errors)}")


async def seed_bootstrap_admin(database: Database) -> None:
    """Create the configured super admin on first start."""
    if not (settings.admin_email and settings.admin_password):
        return
    async with database.session() as session:
        created = await UserService(session).ensure_super_admin(
            settings.admin_email,
            settings.admin_password,
            settings.admin_full_name,
        )
    if created is not None:
        logger.info(f"Bootstrap super admin created: {settings.admin_email}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handle application startup and shutdown events.

    Startup:
    - Validate security settings
    - Connect to the database and verify it answers
    - Create tables if needed (dev only)
    - Seed the bootstrap admin
    - Start the mail worker

    Shutdown:
    - Drain the mail worker
    - Close the rate limiter and database connections
    """
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Version: {settings.app_version}")

    validate_security_settings()

    if init_sentry():
        logger.info("Sentry error tracking enabled")
    else:
        logger.info("Sentry error tracking disabled (no DSN configured)")

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    database: Database = app.state.database

    try:
        await database.ping(timeout=settings.db_health_timeout_seconds)
    except (asyncio.TimeoutError, SQLAlchemyError, OSError) as e:
        logger.error(f"Database is unreachable: {e}")
        if owns_database:
            await database.dispose()
        raise RuntimeError("Cannot start without a reachable database") from e
    logger.info("Database connection verified")

    if settings.debug or settings.create_tables_on_startup:
        await database.create_all()
        logger.info("Database tables created")

    await seed_bootstrap_admin(database)

    dispatcher: Optional[MailDispatcher] = None
    if app.state.mailer is None:
        dispatcher = MailDispatcher.from_settings(settings)
        dispatcher.start()
        app.state.mailer = dispatcher
        logger.info("Mail worker started")

    logger.info("Application startup complete")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    if dispatcher is not None:
        await dispatcher.stop()
        app.state.mailer = None
        logger.info("Mail worker stopped")
    await close_rate_limiter()
    logger.info("Rate limiter closed")
    if owns_database:
        await database.dispose()
        app.state.database = None
        logger.info("Database connections closed")


# =============================================================================
# Middleware
# =============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its latency and echo a request id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms) request_id={request_id}"
        )
        return response


# =============================================================================
# Exception Handlers
# =============================================================================


def _error_response(status_code: int, error: str, details: Any = None, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "details": details},
        headers=headers,
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return _error_response(exc.status_code, exc.detail, exc.details, exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (unknown routes, wrong methods) in the same shape."""
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request data", errors)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")

    event_id = capture_exception(
        exc,
        user_id=getattr(request.state, "user_id", None),
        extra={
            "request_url": str(request.url),
            "request_method": request.method,
            "request_path": request.url.path,
        },
    )

    # Don't expose internal errors in production
    if settings.debug:
        details: Any = str(exc)
    else:
        details = {"ref": event_id} if event_id else None

    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", details)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(database: Optional[Database] = None, mailer: Optional[Mailer] = None) -> FastAPI:
    """
    Build the API application.

    A ``database`` or ``mailer`` passed in is used as-is and left open at
    shutdown; otherwise both are created from settings during startup.
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
    Recruitment API

    Applicants register with an emailed one-time code, apply to departments
    and answer department questions. Evaluators review submitted applications
    in their own department.

    ## Authentication

    Protected endpoints require `Authorization: Bearer <token>`. Obtain a token
    from `/auth/verify-otp` or `/auth/login`.
    """,
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.mailer = mailer

    # Middleware added last runs first
    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Public, outside the versioned prefix
    app.include_router(health.router)

    for module in (auth, applications, answers, questions, users, admin, reviewer):
        app.include_router(module.router, prefix=settings.api_prefix)

    @app.get("/", tags=["Root"], summary="API root")
    async def root() -> dict[str, Any]:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs_url": "/docs" if settings.debug else None,
            "health_url": "/health",
        }

    return app


app = create_app()


# For running with uvicorn directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "recruitment.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
