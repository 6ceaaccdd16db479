"""Department question bank."""

from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.exceptions import NotFoundError
from recruitment.models import Department, Question
from recruitment.services.applications import ApplicationService

logger = structlog.get_logger(__name__)


class QuestionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_questions(self, department: Optional[Department] = None) -> List[Question]:
        query = select(Question)
        if department is not None:
            query = query.where(Question.department == department)
        result = await self.db.execute(query.order_by(Question.department, Question.created_at.asc()))
        return list(result.scalars().all())

    async def get_question(self, question_id: UUID) -> Question:
        question = await self.db.get(Question, question_id)
        if question is None:
            raise NotFoundError("Question")
        return question

    async def list_for_application(
        self, application_id: UUID, user_id: UUID
    ) -> Tuple[Department, List[Question]]:
        """Questions of the department the caller's application targets."""
        application = await ApplicationService(self.db).get_owned(application_id, user_id)
        return application.department, await self.list_questions(application.department)

    async def create_question(self, department: Department, title: str, body: str) -> Question:
        question = Question(department=department, title=title.strip(), body=body)
        self.db.add(question)
        await self.db.flush()
        logger.info("question_created", question_id=str(question.id), department=department.value)
        return question

    async def delete_question(self, question_id: UUID) -> None:
        question = await self.get_question(question_id)
        await self.db.delete(question)
        await self.db.flush()
        logger.info("question_deleted", question_id=str(question_id))
