"""Review workflow service layer for department-scoped evaluation."""

from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from recruitment.database import upsert_statement
from recruitment.models import Answer, Application, Department, Question, Review, User, utc_now
from recruitment.schemas.common import normalize_pagination

logger = structlog.get_logger(__name__)


def _reviewable(department: Department):
    return and_(
        Application.department == department,
        Application.submitted.is_(True),
        Application.chickened_out.is_(False),
    )


class ReviewWorkflowService:
    """Service for evaluators reviewing submitted applications in their department."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def reviewer_department(self, reviewer_id: UUID) -> Department:
        department = await self.db.scalar(select(User.department).where(User.id == reviewer_id))
        if department is None:
            raise AuthorizationError("Reviewer has no department assigned")
        return department

    # =========================================================================
    # Queue
    # =========================================================================

    def _queue_query(self, reviewer_id: UUID):
        return (
            select(
                Application,
                User.full_name,
                User.email,
                User.reg_num,
                Review.id,
                Review.shortlisted,
                Review.comments,
                Review.updated_at,
            )
            .join(User, Application.user_id == User.id)
            .outerjoin(
                Review,
                and_(Review.application_id == Application.id, Review.reviewer_id == reviewer_id),
            )
        )

    @staticmethod
    def _queue_row(row: Any) -> Dict[str, Any]:
        application, user_name, user_email, reg_num, review_id, shortlisted, comments, reviewed_at = row
        return {
            "id": application.id,
            "user_id": application.user_id,
            "department": application.department,
            "submitted": application.submitted,
            "chickened_out": application.chickened_out,
            "created_at": application.created_at,
            "updated_at": application.updated_at,
            "user_name": user_name,
            "user_email": user_email,
            "reg_num": reg_num,
            "review_id": review_id,
            "shortlisted": shortlisted,
            "review_comments": comments,
            "reviewed_at": reviewed_at,
        }

    async def list_for_review(
        self,
        reviewer_id: UUID,
        page: Union[int, str, None] = None,
        limit: Union[int, str, None] = None,
    ) -> Tuple[List[Dict[str, Any]], int, int, int, Department]:
        """
        Submitted, non-withdrawn applications in the reviewer's department,
        newest first, with the reviewer's own review when one exists.

        Returns:
            (rows, total_count, page, limit, department)
        """
        department = await self.reviewer_department(reviewer_id)
        page, limit = normalize_pagination(page, limit)

        total = await self.db.scalar(
            select(func.count(Application.id)).where(_reviewable(department))
        )
        result = await self.db.execute(
            self._queue_query(reviewer_id)
            .where(_reviewable(department))
            .order_by(Application.created_at.desc(), Application.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = [self._queue_row(row) for row in result.all()]
        return rows, total, page, limit, department

    async def get_application_details(
        self,
        reviewer_id: UUID,
        application_id: UUID,
    ) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
        department = await self.reviewer_department(reviewer_id)

        result = await self.db.execute(
            self._queue_query(reviewer_id).where(Application.id == application_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Application")
        application = row[0]
        if application.department != department:
            raise AuthorizationError("Cannot review applications from other departments")
        if not application.submitted or application.chickened_out:
            raise NotFoundError("Application")

        answers = await self.db.execute(
            select(Answer, Question.title, Question.body, Question.department)
            .join(Question, Answer.question_id == Question.id)
            .where(Answer.application_id == application_id)
            .order_by(Answer.created_at.asc())
        )
        answer_rows = [
            {
                "id": answer.id,
                "application_id": answer.application_id,
                "question_id": answer.question_id,
                "user_id": answer.user_id,
                "body": answer.body,
                "created_at": answer.created_at,
                "updated_at": answer.updated_at,
                "question_title": title,
                "question_body": body,
                "department": question_department,
            }
            for answer, title, body, question_department in answers.all()
        ]
        return self._queue_row(row), answer_rows

    # =========================================================================
    # Reviews
    # =========================================================================

    async def create_or_update_review(
        self,
        reviewer_id: UUID,
        application_id: UUID,
        shortlisted: bool,
        comments: Optional[str],
    ) -> Review:
        """
        Upsert the reviewer's verdict on an application.

        Raises:
            NotFoundError: No such application.
            AuthorizationError: The application is in another department.
            ValidationError: The application is not submitted or was withdrawn.
        """
        department = await self.reviewer_department(reviewer_id)

        application = await self.db.get(Application, application_id)
        if application is None:
            raise NotFoundError("Application")
        if application.department != department:
            raise AuthorizationError("Cannot review applications from other departments")
        if not application.submitted:
            raise ValidationError("Cannot review unsubmitted applications")
        if application.chickened_out:
            raise ValidationError("Cannot review withdrawn applications")

        stmt = upsert_statement(self.db, Review).values(
            application_id=application_id,
            reviewer_id=reviewer_id,
            department=department,
            shortlisted=shortlisted,
            comments=comments,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Review.application_id, Review.reviewer_id],
            set_={
                "shortlisted": stmt.excluded.shortlisted,
                "comments": stmt.excluded.comments,
                "updated_at": utc_now(),
            },
        ).returning(Review)
        result = await self.db.execute(stmt, execution_options={"populate_existing": True})
        review = result.scalar_one()

        logger.info(
            "review_saved",
            review_id=str(review.id),
            application_id=str(application_id),
            reviewer_id=str(reviewer_id),
            shortlisted=shortlisted,
        )
        return review

    async def list_own_reviews(self, reviewer_id: UUID) -> List[Review]:
        result = await self.db.execute(
            select(Review).where(Review.reviewer_id == reviewer_id).order_by(Review.updated_at.desc())
        )
        return list(result.scalars().all())

    async def delete_review(self, reviewer_id: UUID, review_id: UUID) -> None:
        result = await self.db.execute(
            delete(Review)
            .where(Review.id == review_id, Review.reviewer_id == reviewer_id)
            .returning(Review.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Review")
        logger.info("review_deleted", review_id=str(review_id), reviewer_id=str(reviewer_id))

    async def get_stats(self, reviewer_id: UUID) -> Dict[str, Any]:
        """
        Department-wide counts over reviewable applications.

        An application counts as reviewed once anyone reviewed it and as
        shortlisted once any review shortlisted it; reviewed applications
        that nobody shortlisted count as rejected.
        """
        department = await self.reviewer_department(reviewer_id)

        total = await self.db.scalar(
            select(func.count(Application.id)).where(_reviewable(department))
        )
        reviewed = await self.db.scalar(
            select(func.count(distinct(Review.application_id)))
            .select_from(Review)
            .join(Application, Review.application_id == Application.id)
            .where(_reviewable(department))
        )
        shortlisted = await self.db.scalar(
            select(func.count(distinct(Review.application_id)))
            .select_from(Review)
            .join(Application, Review.application_id == Application.id)
            .where(_reviewable(department), Review.shortlisted.is_(True))
        )
        return {
            "department": department,
            "total_applications": total,
            "reviewed": reviewed,
            "shortlisted": shortlisted,
            "rejected": reviewed - shortlisted,
            "pending": total - reviewed,
        }
