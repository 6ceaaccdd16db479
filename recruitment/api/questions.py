"""
Question API Endpoints
Public reads by department, the full bank for evaluators, and admin writes.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from recruitment.api.deps import AdminAuth, AsyncSessionDep, CurrentAuth, EvaluatorAuth
from recruitment.core.exceptions import ValidationError
from recruitment.core.rate_limit import RateLimitDependency, RateLimitTier
from recruitment.models import Department
from recruitment.schemas.applications import (
    QuestionCreateRequest,
    QuestionDetailResponse,
    QuestionListResponse,
    QuestionResponse,
)
from recruitment.schemas.common import ERROR_RESPONSES, MessageResponse
from recruitment.services.questions import QuestionService

router = APIRouter(
    prefix="/questions",
    tags=["Questions"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(RateLimitDependency(RateLimitTier.DEFAULT))],
)


def _question_list(questions, department: Optional[Department] = None) -> QuestionListResponse:
    return QuestionListResponse(
        message="Questions retrieved successfully",
        questions=[QuestionResponse.model_validate(q) for q in questions],
        count=len(questions),
        department=department,
    )


@router.get("", response_model=QuestionListResponse, summary="Questions for a department")
async def list_department_questions(
    db: AsyncSessionDep,
    dept: Optional[str] = Query(None, description="Department name"),
) -> QuestionListResponse:
    if not dept:
        raise ValidationError("Query parameter 'dept' is required")
    try:
        department = Department(dept.strip().lower())
    except ValueError:
        raise ValidationError(
            "Invalid department",
            details={"allowed": [d.value for d in Department]},
        )
    questions = await QuestionService(db).list_questions(department)
    return _question_list(questions, department)


@router.get("/all", response_model=QuestionListResponse, summary="Every question")
async def list_all_questions(auth: EvaluatorAuth, db: AsyncSessionDep) -> QuestionListResponse:
    return _question_list(await QuestionService(db).list_questions())


@router.get(
    "/application/{application_id}",
    response_model=QuestionListResponse,
    summary="Questions for one of your applications",
)
async def list_application_questions(
    application_id: UUID,
    auth: CurrentAuth,
    db: AsyncSessionDep,
) -> QuestionListResponse:
    department, questions = await QuestionService(db).list_for_application(application_id, auth.user_id)
    return _question_list(questions, department)


@router.get("/{question_id}", response_model=QuestionDetailResponse, summary="Get a question")
async def get_question(question_id: UUID, db: AsyncSessionDep) -> QuestionDetailResponse:
    question = await QuestionService(db).get_question(question_id)
    return QuestionDetailResponse(
        message="Question retrieved successfully",
        question=QuestionResponse.model_validate(question),
    )


@router.post(
    "",
    response_model=QuestionDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a question",
)
async def create_question(
    data: QuestionCreateRequest,
    auth: AdminAuth,
    db: AsyncSessionDep,
) -> QuestionDetailResponse:
    question = await QuestionService(db).create_question(data.department, data.title, data.body)
    return QuestionDetailResponse(
        message="Question created successfully",
        question=QuestionResponse.model_validate(question),
    )


@router.delete("/{question_id}", response_model=MessageResponse, summary="Delete a question")
async def delete_question(question_id: UUID, auth: AdminAuth, db: AsyncSessionDep) -> MessageResponse:
    await QuestionService(db).delete_question(question_id)
    return MessageResponse(message="Question deleted successfully")
