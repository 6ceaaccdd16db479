"""
Recruitment Backend Command Line

Usage:
    recruitment serve [--host HOST] [--port PORT] [--reload]
    recruitment health-check
    recruitment hash-password <password>
    recruitment generate-jwt-secret

``health-check`` exits 0 when the database answers within five seconds
and 1 on any failure, for container health probes.
"""

import argparse
import asyncio
import base64
import secrets
import sys
from typing import Optional, Sequence

import structlog
from sqlalchemy.exc import SQLAlchemyError

from recruitment.core.config import settings
from recruitment.core.logging_config import configure_logging
from recruitment.core.security import get_password_hash
from recruitment.database import Database

logger = structlog.get_logger(__name__)

HEALTH_CHECK_TIMEOUT_SECONDS = 5.0
JWT_SECRET_BYTES = 32


async def check_database(timeout: float = HEALTH_CHECK_TIMEOUT_SECONDS) -> bool:
    """Ping the configured database once."""
    database = Database(settings.database_url, pool_size=1, max_overflow=0)
    try:
        await database.ping(timeout=timeout)
        return True
    except asyncio.TimeoutError:
        logger.error("health_check_timeout", timeout=timeout)
        return False
    except (SQLAlchemyError, OSError) as e:
        logger.error("health_check_failed", error=str(e))
        return False
    finally:
        await database.dispose()


def run_health_check() -> int:
    if not asyncio.run(check_database()):
        print("Database health check failed", file=sys.stderr)
        return 1
    print("Health check passed")
    return 0


def run_hash_password(password: str) -> int:
    if not password:
        print("Error: Password cannot be empty", file=sys.stderr)
        return 1
    hashed = get_password_hash(password)
    print("Password Hash Generated:")
    print("=======================")
    print(f"Bcrypt hash: {hashed}")
    print(f"Cost factor: {int(hashed.split('$')[2])}")
    print()
    print("Note: This hash can be safely stored in your database.")
    return 0


def run_generate_jwt_secret() -> int:
    secret_bytes = secrets.token_bytes(JWT_SECRET_BYTES)
    secret = base64.urlsafe_b64encode(secret_bytes).decode()
    print("Generated JWT Secret:")
    print("=====================")
    print(f"Base64 encoded: {secret}")
    print(f"Hex encoded: {secret_bytes.hex()}")
    print()
    print("Add this to your .env file:")
    print(f"JWT_SECRET={secret}")
    return 0


def run_serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    uvicorn.run(
        "recruitment.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="debug" if settings.debug else "info",
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recruitment",
        description="Recruitment backend server and maintenance commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  recruitment serve --port 8080
  recruitment health-check
  recruitment hash-password mypassword123
  recruitment generate-jwt-secret
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=settings.host, help="Bind address")
    serve.add_argument("--port", type=int, default=settings.port, help="Bind port")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    subparsers.add_parser("health-check", help="Ping the database and exit 0 or 1")

    hash_password = subparsers.add_parser("hash-password", help="Print a bcrypt hash for a password")
    hash_password.add_argument("password", help="Plaintext password")

    subparsers.add_parser("generate-jwt-secret", help="Print a random JWT secret")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging()

    if args.command == "serve":
        return run_serve(args.host, args.port, args.reload)
    if args.command == "health-check":
        return run_health_check()
    if args.command == "hash-password":
        return run_hash_password(args.password)
    return run_generate_jwt_secret()


if __name__ == "__main__":
    sys.exit(main())
