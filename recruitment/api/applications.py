"""
Application API Endpoints
Draft creation, answer saving, submission and deletion for applicants;
the full listing for admins.
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from recruitment.api.deps import AdminAuth, ApplicantAuth, AsyncSessionDep, CurrentAuth
from recruitment.core.rate_limit import RateLimitDependency, RateLimitTier
from recruitment.schemas.applications import (
    AnswerResponse,
    ApplicationCreateRequest,
    ApplicationDetailResponse,
    ApplicationListResponse,
    ApplicationResponse,
    SaveAnswersRequest,
    SaveAnswersResponse,
)
from recruitment.schemas.common import ERROR_RESPONSES, MessageResponse
from recruitment.services.applications import ApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/applications",
    tags=["Applications"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(RateLimitDependency(RateLimitTier.DEFAULT))],
)


@router.get("", response_model=ApplicationListResponse, summary="List all applications")
async def list_applications(auth: AdminAuth, db: AsyncSessionDep) -> ApplicationListResponse:
    applications = await ApplicationService(db).list_all()
    return ApplicationListResponse(
        message="Applications retrieved successfully",
        applications=[ApplicationResponse.model_validate(a) for a in applications],
        count=len(applications),
    )


@router.post(
    "",
    response_model=ApplicationDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft application",
)
async def create_application(
    data: ApplicationCreateRequest,
    auth: ApplicantAuth,
    db: AsyncSessionDep,
) -> ApplicationDetailResponse:
    """
    Start an application for one department.

    One application per department, and at most
    ``MAX_APPLICATIONS_PER_USER`` in total.
    """
    application = await ApplicationService(db).create(auth.user_id, data.department)
    return ApplicationDetailResponse(
        message="Application created successfully",
        application=ApplicationResponse.model_validate(application),
    )


@router.get("/me", response_model=ApplicationListResponse, summary="List own applications")
async def list_my_applications(auth: CurrentAuth, db: AsyncSessionDep) -> ApplicationListResponse:
    applications = await ApplicationService(db).list_own(auth.user_id)
    return ApplicationListResponse(
        message="Applications retrieved successfully",
        applications=[ApplicationResponse.model_validate(a) for a in applications],
        count=len(applications),
    )


@router.patch("/{application_id}/save", response_model=SaveAnswersResponse, summary="Save answers")
async def save_answers(
    application_id: UUID,
    data: SaveAnswersRequest,
    auth: CurrentAuth,
    db: AsyncSessionDep,
) -> SaveAnswersResponse:
    """Insert or overwrite answers on a draft. The whole batch succeeds or fails together."""
    answers = await ApplicationService(db).save_answers(application_id, auth.user_id, data.answers)
    return SaveAnswersResponse(
        message="Answers saved successfully",
        application_id=application_id,
        answers=[AnswerResponse.model_validate(a) for a in answers],
        count=len(answers),
    )


@router.post("/{application_id}/submit", response_model=ApplicationDetailResponse, summary="Submit")
async def submit_application(
    application_id: UUID,
    auth: CurrentAuth,
    db: AsyncSessionDep,
) -> ApplicationDetailResponse:
    application, changed = await ApplicationService(db).submit(application_id, auth.user_id)
    message = "Application submitted successfully" if changed else "Application already submitted"
    return ApplicationDetailResponse(
        message=message,
        application=ApplicationResponse.model_validate(application),
    )


@router.delete("/{application_id}", response_model=MessageResponse, summary="Delete a draft")
async def delete_application(
    application_id: UUID,
    auth: CurrentAuth,
    db: AsyncSessionDep,
) -> MessageResponse:
    await ApplicationService(db).delete(application_id, auth.user_id)
    return MessageResponse(message="Application deleted successfully")
