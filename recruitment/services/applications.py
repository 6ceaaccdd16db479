"""
Application lifecycle.

An application moves one way, from draft (``submitted = false``) to
submitted. Answers can only change while it is a draft. Withdrawal is a
separate flag set on the user and on every one of their applications.

Ownership-sensitive writes are single conditional statements
(``WHERE id = :id AND user_id = :caller``) so concurrent requests cannot
race between a check and the write.
"""

from typing import List
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.config import settings
from recruitment.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from recruitment.database import upsert_statement
from recruitment.models import Answer, Application, Department, Question, User, utc_now
from recruitment.schemas.applications import AnswerItem

logger = structlog.get_logger(__name__)

APPLICATION_NOT_FOUND = "Application not found or access denied"


class ApplicationService:
    """Creation, answer saving, submission, deletion and withdrawal."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_own(self, user_id: UUID) -> List[Application]:
        result = await self.db.execute(
            select(Application)
            .where(Application.user_id == user_id)
            .order_by(Application.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> List[Application]:
        result = await self.db.execute(select(Application).order_by(Application.created_at.desc()))
        return list(result.scalars().all())

    async def get_owned(self, application_id: UUID, user_id: UUID) -> Application:
        """Fetch an application only if ``user_id`` owns it; otherwise 404."""
        result = await self.db.execute(
            select(Application).where(
                Application.id == application_id,
                Application.user_id == user_id,
            )
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError("Application", message=APPLICATION_NOT_FOUND)
        return application

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def _ensure_not_withdrawn(self, user_id: UUID) -> None:
        withdrawn = await self.db.scalar(select(User.chickened_out).where(User.id == user_id))
        if withdrawn is None:
            raise NotFoundError("User")
        if withdrawn:
            raise AuthorizationError("You have withdrawn from recruitment")

    async def create(self, user_id: UUID, department: Department) -> Application:
        """
        Create a draft application.

        Raises:
            AuthorizationError: The per-user quota is reached or the user withdrew.
            NotFoundError: The user no longer exists.
            ConflictError: The user already applied to ``department``.
        """
        await self._ensure_not_withdrawn(user_id)

        current = await self.db.scalar(
            select(func.count(Application.id)).where(Application.user_id == user_id)
        )
        maximum = settings.max_applications_per_user
        if current >= maximum:
            raise AuthorizationError(
                "Maximum number of applications reached",
                details={
                    "current_applications": current,
                    "maximum_allowed": maximum,
                    "message": f"You can only create up to {maximum} applications",
                },
            )

        application = Application(user_id=user_id, department=department)
        try:
            async with self.db.begin_nested():
                self.db.add(application)
        except IntegrityError:
            if not await self._has_application(user_id, department):
                raise
            raise ConflictError(
                "You have already created an application for this department",
                details={
                    "department": department.value,
                    "message": "Only one application per department is allowed per user",
                },
            )

        logger.info("application_created", application_id=str(application.id), user_id=str(user_id))
        return application

    async def save_answers(
        self,
        application_id: UUID,
        user_id: UUID,
        answers: List[AnswerItem],
    ) -> List[Answer]:
        """
        Upsert a batch of answers on a draft application.

        The whole batch is validated before anything is written and the
        writes share one savepoint, so either every answer is stored or none.
        """
        application = await self._get_draft_for_update(application_id, user_id)
        await self._ensure_not_withdrawn(user_id)

        question_ids = {item.question_id for item in answers}
        result = await self.db.execute(select(Question).where(Question.id.in_(question_ids)))
        questions = {question.id: question for question in result.scalars().all()}

        for item in answers:
            question = questions.get(item.question_id)
            if question is None:
                raise ValidationError(
                    "Question not found",
                    details={"question_id": str(item.question_id)},
                )
            if question.department != application.department:
                raise ValidationError(
                    "Question department does not match application department",
                    details={
                        "question_id": str(item.question_id),
                        "application_department": application.department.value,
                        "question_department": question.department.value,
                    },
                )

        # Last body wins when a batch repeats a question
        bodies = {item.question_id: item.body for item in answers}
        async with self.db.begin_nested():
            saved = [
                await self._upsert_answer(application.id, user_id, question_id, body)
                for question_id, body in bodies.items()
            ]

        logger.info("answers_saved", application_id=str(application_id), count=len(saved))
        return saved

    async def upsert_answer(
        self,
        application_id: UUID,
        user_id: UUID,
        question_id: UUID,
        body: str,
    ) -> Answer:
        """Single-answer variant of ``save_answers``."""
        saved = await self.save_answers(
            application_id,
            user_id,
            [AnswerItem(question_id=question_id, body=body)],
        )
        return saved[0]

    async def submit(self, application_id: UUID, user_id: UUID) -> tuple[Application, bool]:
        """
        Mark an owned draft as submitted.

        Returns the application and whether this call changed it. Submitting
        an already submitted application is a no-op success. Applications
        that do not exist and those owned by someone else are both 404.
        """
        application = await self.get_owned(application_id, user_id)
        await self._ensure_not_withdrawn(user_id)

        result = await self.db.execute(
            update(Application)
            .where(
                Application.id == application_id,
                Application.user_id == user_id,
                Application.submitted.is_(False),
            )
            .values(submitted=True, updated_at=utc_now())
            .returning(Application.id)
            .execution_options(synchronize_session=False)
        )
        changed = result.scalar_one_or_none() is not None

        if changed:
            await self.db.refresh(application)
            logger.info("application_submitted", application_id=str(application_id), user_id=str(user_id))
        return application, changed

    async def delete(self, application_id: UUID, user_id: UUID) -> None:
        """
        Delete an owned draft together with its answers.

        Raises:
            NotFoundError: No such application for this caller.
            ConflictError: The application was already submitted.
        """
        result = await self.db.execute(
            delete(Application)
            .where(
                Application.id == application_id,
                Application.user_id == user_id,
                Application.submitted.is_(False),
            )
            .returning(Application.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            # Distinguish "submitted" for the owner only
            await self.get_owned(application_id, user_id)
            raise ConflictError("Submitted applications cannot be deleted")

        await self.db.execute(delete(Answer).where(Answer.application_id == application_id))
        logger.info("application_deleted", application_id=str(application_id), user_id=str(user_id))

    async def withdraw(self, user_id: UUID) -> tuple[User, int]:
        """
        Withdraw the user from recruitment. Idempotent.

        Sets the flag on the user and on all of their applications so they
        drop out of review queues. Returns the user and how many
        applications changed in this call.
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User")

        result = await self.db.execute(
            update(Application)
            .where(Application.user_id == user_id, Application.chickened_out.is_(False))
            .values(chickened_out=True, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if not user.chickened_out:
            user.chickened_out = True
            await self.db.flush()
            logger.info("user_withdrew", user_id=str(user_id), applications=result.rowcount)
        return user, result.rowcount

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _has_application(self, user_id: UUID, department: Department) -> bool:
        existing = await self.db.scalar(
            select(Application.id).where(
                Application.user_id == user_id,
                Application.department == department,
            )
        )
        return existing is not None

    async def _get_draft_for_update(self, application_id: UUID, user_id: UUID) -> Application:
        """Load an owned draft and lock its row until the transaction ends."""
        result = await self.db.execute(
            select(Application)
            .where(Application.id == application_id, Application.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError("Application", message=APPLICATION_NOT_FOUND)
        if application.submitted:
            raise ConflictError("Cannot modify a submitted application")
        return application

    async def _upsert_answer(
        self,
        application_id: UUID,
        user_id: UUID,
        question_id: UUID,
        body: str,
    ) -> Answer:
        now = utc_now()
        stmt = upsert_statement(self.db, Answer).values(
            application_id=application_id,
            question_id=question_id,
            user_id=user_id,
            body=body,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Answer.application_id, Answer.question_id],
            set_={"body": stmt.excluded.body, "updated_at": now},
        ).returning(Answer)
        result = await self.db.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()
