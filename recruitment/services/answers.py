"""Answer reads and single-answer deletion."""

from typing import List
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.exceptions import ConflictError, NotFoundError
from recruitment.models import Answer, Application
from recruitment.services.applications import ApplicationService

logger = structlog.get_logger(__name__)


class AnswerService:
    """Owner-scoped answer access plus the evaluator view of a user's answers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_application(self, application_id: UUID, user_id: UUID) -> List[Answer]:
        """Answers of one of the caller's applications, oldest first."""
        await ApplicationService(self.db).get_owned(application_id, user_id)
        result = await self.db.execute(
            select(Answer)
            .join(Application, Answer.application_id == Application.id)
            .where(Answer.application_id == application_id, Application.user_id == user_id)
            .order_by(Answer.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_by_user(self, user_id: UUID) -> List[Answer]:
        """Every answer written by ``user_id``, newest first."""
        result = await self.db.execute(
            select(Answer).where(Answer.user_id == user_id).order_by(Answer.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete(self, answer_id: UUID, user_id: UUID) -> None:
        """
        Delete one of the caller's answers while its application is a draft.

        Answers belonging to someone else are reported as not found.
        """
        draft_ids = select(Application.id).where(Application.submitted.is_(False))
        result = await self.db.execute(
            delete(Answer)
            .where(
                Answer.id == answer_id,
                Answer.user_id == user_id,
                Answer.application_id.in_(draft_ids),
            )
            .returning(Answer.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is not None:
            logger.info("answer_deleted", answer_id=str(answer_id), user_id=str(user_id))
            return

        owned = await self.db.scalar(
            select(Answer.id).where(Answer.id == answer_id, Answer.user_id == user_id)
        )
        if owned is None:
            raise NotFoundError("Answer")
        raise ConflictError("Cannot modify a submitted application")
