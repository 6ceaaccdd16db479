"""
Reviewer API Endpoints
Department-scoped review queue, verdicts and statistics for evaluators.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from recruitment.api.deps import AsyncSessionDep, EvaluatorAuth
from recruitment.core.rate_limit import RateLimitDependency, RateLimitTier
from recruitment.schemas.applications import AnswerWithQuestionResponse
from recruitment.schemas.common import ERROR_RESPONSES, MessageResponse, PaginationInfo, total_pages
from recruitment.schemas.reviews import (
    ApplicationForReview,
    ApplicationReviewDetailResponse,
    ReviewCreateRequest,
    ReviewDetailResponse,
    ReviewListResponse,
    ReviewQueueResponse,
    ReviewResponse,
    ReviewStats,
    ReviewStatsResponse,
)
from recruitment.services.review_workflow import ReviewWorkflowService

router = APIRouter(
    prefix="/reviewer",
    tags=["Reviewer"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(RateLimitDependency(RateLimitTier.DEFAULT))],
)


@router.get("/applications", response_model=ReviewQueueResponse, summary="Review queue")
async def list_applications_for_review(
    auth: EvaluatorAuth,
    db: AsyncSessionDep,
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description="Page size, at most 100"),
) -> ReviewQueueResponse:
    """
    Submitted applications in the caller's department, newest first.

    Paging values that are not usable integers fall back to page 1 and a
    page size of 50.
    """
    rows, total, page, limit, department = await ReviewWorkflowService(db).list_for_review(
        auth.user_id, page, limit
    )
    return ReviewQueueResponse(
        message="Applications retrieved successfully",
        applications=[ApplicationForReview.model_validate(row) for row in rows],
        pagination=PaginationInfo(
            current_page=page,
            total_pages=total_pages(total, limit),
            total_count=total,
            limit=limit,
        ),
        department=department,
    )


@router.get(
    "/applications/{application_id}",
    response_model=ApplicationReviewDetailResponse,
    summary="Application with answers",
)
async def get_application_for_review(
    application_id: UUID,
    auth: EvaluatorAuth,
    db: AsyncSessionDep,
) -> ApplicationReviewDetailResponse:
    application, answers = await ReviewWorkflowService(db).get_application_details(
        auth.user_id, application_id
    )
    return ApplicationReviewDetailResponse(
        message="Application retrieved successfully",
        application=ApplicationForReview.model_validate(application),
        answers=[AnswerWithQuestionResponse.model_validate(a) for a in answers],
        count=len(answers),
    )


@router.post("/reviews", response_model=ReviewDetailResponse, summary="Create or update a review")
async def create_or_update_review(
    data: ReviewCreateRequest,
    auth: EvaluatorAuth,
    db: AsyncSessionDep,
) -> ReviewDetailResponse:
    review = await ReviewWorkflowService(db).create_or_update_review(
        auth.user_id, data.application_id, data.shortlisted, data.comments
    )
    return ReviewDetailResponse(
        message="Review saved successfully",
        review=ReviewResponse.model_validate(review),
    )


@router.get("/reviews", response_model=ReviewListResponse, summary="Own reviews")
async def list_my_reviews(auth: EvaluatorAuth, db: AsyncSessionDep) -> ReviewListResponse:
    reviews = await ReviewWorkflowService(db).list_own_reviews(auth.user_id)
    return ReviewListResponse(
        message="Reviews retrieved successfully",
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        count=len(reviews),
    )


@router.delete("/reviews/{review_id}", response_model=MessageResponse, summary="Delete own review")
async def delete_review(review_id: UUID, auth: EvaluatorAuth, db: AsyncSessionDep) -> MessageResponse:
    await ReviewWorkflowService(db).delete_review(auth.user_id, review_id)
    return MessageResponse(message="Review deleted successfully")


@router.get("/stats", response_model=ReviewStatsResponse, summary="Department review statistics")
async def get_review_stats(auth: EvaluatorAuth, db: AsyncSessionDep) -> ReviewStatsResponse:
    stats = await ReviewWorkflowService(db).get_stats(auth.user_id)
    return ReviewStatsResponse(
        message="Review statistics retrieved successfully",
        stats=ReviewStats(**stats),
    )
