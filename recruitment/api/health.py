"""
Health Check Endpoint
Liveness plus a bounded database ping for load balancers and orchestrators.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from recruitment.core.config import settings
from recruitment.database import Database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    checks: Optional[dict[str, str]] = None
    error: Optional[str] = None


async def check_database(database: Database, timeout: float) -> bool:
    """Return True when the database answers ``SELECT 1`` within ``timeout`` seconds."""
    try:
        await database.ping(timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Database health check timed out after {timeout}s")
        return False
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    summary="Health check",
    responses={503: {"model": HealthResponse, "description": "Database unreachable"}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    timestamp = datetime.now(timezone.utc).isoformat()
    database: Database = request.app.state.database

    if not await check_database(database, settings.db_health_timeout_seconds):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="unhealthy", timestamp=timestamp, error="database connection failed")

    return HealthResponse(status="healthy", timestamp=timestamp, checks={"database": "ok"})
