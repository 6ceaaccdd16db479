"""
Recruitment Pydantic Schemas
Request/Response models for API endpoints.
"""
from recruitment.schemas.common import ErrorResponse, MessageResponse, PaginationInfo

__all__ = [
    "ErrorResponse",
    "MessageResponse",
    "PaginationInfo",
]
