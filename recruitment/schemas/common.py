"""
Common schemas for standardized API responses.
"""
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Response for operations that only report an outcome."""

    message: str


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Human readable error message")
    details: Optional[Any] = Field(None, description="Structured context for the error")


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid request data"},
    401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
    403: {"model": ErrorResponse, "description": "Insufficient permissions"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    409: {"model": ErrorResponse, "description": "Conflicting state"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
}


class PaginationInfo(BaseModel):
    """Page-number pagination metadata."""

    current_page: int
    total_pages: int
    total_count: int
    limit: int


DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
# Keeps (page - 1) * limit inside a 32-bit OFFSET
MAX_PAGE = 20_000_000


def _as_int(value: Union[int, str, None]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_pagination(
    page: Union[int, str, None],
    limit: Union[int, str, None],
) -> tuple[int, int]:
    """
    Clamp paging parameters.

    Values that are missing or not integers are treated as absent. A page
    below 1 becomes 1 and a page above MAX_PAGE becomes MAX_PAGE; a limit
    outside 1..MAX_PAGE_SIZE falls back to DEFAULT_PAGE_SIZE.
    """
    page = _as_int(page)
    limit = _as_int(limit)
    page = min(page, MAX_PAGE) if page and page > 0 else 1
    if not limit or limit < 1 or limit > MAX_PAGE_SIZE:
        limit = DEFAULT_PAGE_SIZE
    return page, limit


def total_pages(total_count: int, limit: int) -> int:
    return (total_count + limit - 1) // limit
