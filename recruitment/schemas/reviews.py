"""Schemas for the evaluator review workflow."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from recruitment.models import Department
from recruitment.schemas.applications import AnswerWithQuestionResponse, ApplicationResponse
from recruitment.schemas.common import PaginationInfo


class ReviewCreateRequest(BaseModel):
    application_id: UUID
    shortlisted: bool = False
    comments: Optional[str] = Field(None, max_length=5000)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    reviewer_id: UUID
    department: Department
    shortlisted: bool
    comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ReviewDetailResponse(BaseModel):
    message: str
    review: ReviewResponse


class ReviewListResponse(BaseModel):
    message: str
    reviews: List[ReviewResponse]
    count: int


class ApplicationForReview(ApplicationResponse):
    """Submitted application with its applicant and the caller's review, if any."""

    user_name: str
    user_email: str
    reg_num: Optional[str] = None
    review_id: Optional[UUID] = None
    shortlisted: Optional[bool] = None
    review_comments: Optional[str] = None
    reviewed_at: Optional[datetime] = None


class ReviewQueueResponse(BaseModel):
    message: str
    applications: List[ApplicationForReview]
    pagination: PaginationInfo
    department: Department


class ApplicationReviewDetailResponse(BaseModel):
    message: str
    application: ApplicationForReview
    answers: List[AnswerWithQuestionResponse]
    count: int


class ReviewStats(BaseModel):
    department: Department
    total_applications: int
    reviewed: int
    shortlisted: int
    rejected: int
    pending: int


class ReviewStatsResponse(BaseModel):
    message: str
    stats: ReviewStats
