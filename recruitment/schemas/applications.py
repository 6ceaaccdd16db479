"""Application, answer and question schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from recruitment.models import Department

# =============================================================================
# Applications
# =============================================================================


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    department: Department
    submitted: bool
    chickened_out: bool
    created_at: datetime
    updated_at: datetime


class ApplicationCreateRequest(BaseModel):
    department: Department


class ApplicationDetailResponse(BaseModel):
    message: str
    application: ApplicationResponse


class ApplicationListResponse(BaseModel):
    message: str
    applications: List[ApplicationResponse]
    count: int


# =============================================================================
# Answers
# =============================================================================


class AnswerItem(BaseModel):
    question_id: UUID
    body: str = Field(..., min_length=1)


class SaveAnswersRequest(BaseModel):
    answers: List[AnswerItem] = Field(..., min_length=1)


class PostAnswerRequest(BaseModel):
    application_id: UUID
    question_id: UUID
    body: str = Field(..., min_length=1)


class AnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    question_id: UUID
    user_id: UUID
    body: str
    created_at: datetime
    updated_at: datetime


class AnswerWithQuestionResponse(AnswerResponse):
    question_title: str
    question_body: str
    department: Department


class SaveAnswersResponse(BaseModel):
    message: str
    application_id: UUID
    answers: List[AnswerResponse]
    count: int


class AnswerDetailResponse(BaseModel):
    message: str
    answer: AnswerResponse


class ApplicationAnswersResponse(BaseModel):
    message: str
    answers: List[AnswerResponse]
    count: int
    application_id: UUID


class UserAnswersResponse(BaseModel):
    message: str
    answers: List[AnswerResponse]
    count: int
    user_id: UUID


# =============================================================================
# Questions
# =============================================================================


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    department: Department
    title: str
    body: str
    created_at: datetime


class QuestionCreateRequest(BaseModel):
    department: Department
    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1)


class QuestionDetailResponse(BaseModel):
    message: str
    question: QuestionResponse


class QuestionListResponse(BaseModel):
    message: str
    questions: List[QuestionResponse]
    count: int
    department: Optional[Department] = None
