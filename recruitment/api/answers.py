"""
Answer API Endpoints
Single-answer upsert and deletion for applicants, answer listings for
owners and evaluators.
"""
from uuid import UUID

from fastapi import APIRouter, Depends

from recruitment.api.deps import AsyncSessionDep, CurrentAuth, EvaluatorAuth
from recruitment.core.rate_limit import RateLimitDependency, RateLimitTier
from recruitment.schemas.applications import (
    AnswerDetailResponse,
    AnswerResponse,
    ApplicationAnswersResponse,
    PostAnswerRequest,
    UserAnswersResponse,
)
from recruitment.schemas.common import ERROR_RESPONSES, MessageResponse
from recruitment.services.answers import AnswerService
from recruitment.services.applications import ApplicationService

router = APIRouter(
    prefix="/answers",
    tags=["Answers"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(RateLimitDependency(RateLimitTier.DEFAULT))],
)


@router.post("", response_model=AnswerDetailResponse, summary="Save a single answer")
async def post_answer(data: PostAnswerRequest, auth: CurrentAuth, db: AsyncSessionDep) -> AnswerDetailResponse:
    answer = await ApplicationService(db).upsert_answer(
        data.application_id,
        auth.user_id,
        data.question_id,
        data.body,
    )
    return AnswerDetailResponse(
        message="Answer saved successfully",
        answer=AnswerResponse.model_validate(answer),
    )


@router.delete("/{answer_id}", response_model=MessageResponse, summary="Delete own answer")
async def delete_answer(answer_id: UUID, auth: CurrentAuth, db: AsyncSessionDep) -> MessageResponse:
    await AnswerService(db).delete(answer_id, auth.user_id)
    return MessageResponse(message="Answer deleted successfully")


@router.get(
    "/application/{application_id}",
    response_model=ApplicationAnswersResponse,
    summary="Answers of one of your applications",
)
async def get_application_answers(
    application_id: UUID,
    auth: CurrentAuth,
    db: AsyncSessionDep,
) -> ApplicationAnswersResponse:
    answers = await AnswerService(db).list_for_application(application_id, auth.user_id)
    return ApplicationAnswersResponse(
        message="Answers retrieved successfully",
        answers=[AnswerResponse.model_validate(a) for a in answers],
        count=len(answers),
        application_id=application_id,
    )


@router.get("/user/{user_id}", response_model=UserAnswersResponse, summary="All answers by a user")
async def get_user_answers(user_id: UUID, auth: EvaluatorAuth, db: AsyncSessionDep) -> UserAnswersResponse:
    answers = await AnswerService(db).list_by_user(user_id)
    return UserAnswersResponse(
        message="Answers retrieved successfully",
        answers=[AnswerResponse.model_validate(a) for a in answers],
        count=len(answers),
        user_id=user_id,
    )
