"""
Tests for the department-scoped review workflow.
"""
import pytest

from recruitment.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from recruitment.models import Answer, Department, UserRole
from recruitment.schemas.common import MAX_PAGE
from recruitment.services.review_workflow import ReviewWorkflowService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def submitted_applications(make_user, make_application):
    """Create ``count`` submitted applications in ``department``, one applicant each."""

    async def _make(count: int, department: Department = Department.TECHNICAL):
        applications = []
        for _ in range(count):
            user = await make_user()
            applications.append(await make_application(user, department, submitted=True))
        return applications

    return _make


class TestQueue:
    async def test_only_submitted_non_withdrawn_in_department(
        self, database, evaluator, make_user, make_application, submitted_applications
    ):
        visible = await submitted_applications(2)
        await submitted_applications(1, Department.DESIGN)
        draft_owner = await make_user()
        await make_application(draft_owner, Department.TECHNICAL)
        withdrawn_owner = await make_user()
        await make_application(withdrawn_owner, Department.TECHNICAL, submitted=True, chickened_out=True)

        async with database.session() as session:
            rows, total, page, limit, department = await ReviewWorkflowService(session).list_for_review(
                evaluator.id
            )

        assert total == 2
        assert {row["id"] for row in rows} == {a.id for a in visible}
        assert (page, limit, department) == (1, 50, Department.TECHNICAL)
        assert all(row["review_id"] is None for row in rows)

    async def test_pagination_clamps_out_of_range_values(self, database, evaluator, submitted_applications):
        await submitted_applications(3)

        async with database.session() as session:
            service = ReviewWorkflowService(session)
            rows, total, page, limit, _ = await service.list_for_review(evaluator.id, page=2, limit=2)
            assert (len(rows), total, page, limit) == (1, 3, 2, 2)

            _, _, page, limit, _ = await service.list_for_review(evaluator.id, page=0, limit=500)
            assert (page, limit) == (1, 50)

            rows, _, page, _, _ = await service.list_for_review(evaluator.id, page=10**20, limit=100)
            assert (rows, page) == ([], MAX_PAGE)

            _, _, page, limit, _ = await service.list_for_review(evaluator.id, page="x", limit="2.5")
            assert (page, limit) == (1, 50)

    async def test_reviewer_without_department_is_forbidden(self, database, make_user):
        reviewer = await make_user(UserRole.EVALUATOR, department=None)

        async with database.session() as session:
            with pytest.raises(AuthorizationError):
                await ReviewWorkflowService(session).list_for_review(reviewer.id)


class TestReviews:
    async def test_upsert_keeps_one_review_per_reviewer(self, database, evaluator, submitted_applications):
        (application,) = await submitted_applications(1)

        async with database.session() as session:
            first = await ReviewWorkflowService(session).create_or_update_review(
                evaluator.id, application.id, False, "needs work"
            )
        async with database.session() as session:
            second = await ReviewWorkflowService(session).create_or_update_review(
                evaluator.id, application.id, True, "great"
            )
        async with database.session() as session:
            reviews = await ReviewWorkflowService(session).list_own_reviews(evaluator.id)

        assert first.id == second.id
        assert len(reviews) == 1
        assert reviews[0].shortlisted is True
        assert reviews[0].comments == "great"
        assert reviews[0].department is Department.TECHNICAL

    async def test_cross_department_review_forbidden(self, database, evaluator, submitted_applications):
        (application,) = await submitted_applications(1, Department.MANAGEMENT)

        async with database.session() as session:
            with pytest.raises(AuthorizationError):
                await ReviewWorkflowService(session).create_or_update_review(
                    evaluator.id, application.id, True, None
                )

    async def test_unsubmitted_application_rejected(self, database, evaluator, applicant, make_application):
        application = await make_application(applicant, Department.TECHNICAL)

        async with database.session() as session:
            with pytest.raises(ValidationError):
                await ReviewWorkflowService(session).create_or_update_review(
                    evaluator.id, application.id, True, None
                )

    async def test_withdrawn_application_rejected(self, database, evaluator, applicant, make_application):
        application = await make_application(
            applicant, Department.TECHNICAL, submitted=True, chickened_out=True
        )

        async with database.session() as session:
            with pytest.raises(ValidationError):
                await ReviewWorkflowService(session).create_or_update_review(
                    evaluator.id, application.id, False, None
                )

    async def test_delete_only_own_review(self, database, evaluator, make_user, submitted_applications):
        (application,) = await submitted_applications(1)
        colleague = await make_user(UserRole.EVALUATOR, department=Department.TECHNICAL)
        async with database.session() as session:
            review = await ReviewWorkflowService(session).create_or_update_review(
                evaluator.id, application.id, True, None
            )

        async with database.session() as session:
            with pytest.raises(NotFoundError):
                await ReviewWorkflowService(session).delete_review(colleague.id, review.id)
        async with database.session() as session:
            await ReviewWorkflowService(session).delete_review(evaluator.id, review.id)
        async with database.session() as session:
            assert await ReviewWorkflowService(session).list_own_reviews(evaluator.id) == []


class TestDetailsAndStats:
    async def test_details_include_answers_with_questions(
        self, database, evaluator, applicant, make_application, make_question
    ):
        application = await make_application(applicant, Department.TECHNICAL, submitted=True)
        question = await make_question(Department.TECHNICAL, "Favourite language?")
        async with database.session() as session:
            session.add(
                Answer(
                    application_id=application.id,
                    question_id=question.id,
                    user_id=applicant.id,
                    body="Python",
                )
            )

        async with database.session() as session:
            row, answers = await ReviewWorkflowService(session).get_application_details(
                evaluator.id, application.id
            )

        assert row["user_email"] == applicant.email
        assert answers[0]["question_title"] == "Favourite language?"
        assert answers[0]["body"] == "Python"

    async def test_details_of_draft_not_found(self, database, evaluator, applicant, make_application):
        application = await make_application(applicant, Department.TECHNICAL)

        async with database.session() as session:
            with pytest.raises(NotFoundError):
                await ReviewWorkflowService(session).get_application_details(evaluator.id, application.id)

    async def test_stats_count_department_applications(
        self, database, evaluator, make_user, submitted_applications
    ):
        apps = await submitted_applications(4)
        await submitted_applications(2, Department.DESIGN)
        colleague = await make_user(UserRole.EVALUATOR, department=Department.TECHNICAL)

        async with database.session() as session:
            service = ReviewWorkflowService(session)
            await service.create_or_update_review(evaluator.id, apps[0].id, True, None)
            await service.create_or_update_review(colleague.id, apps[0].id, False, None)
            await service.create_or_update_review(evaluator.id, apps[1].id, False, None)

        async with database.session() as session:
            stats = await ReviewWorkflowService(session).get_stats(evaluator.id)

        assert stats == {
            "department": Department.TECHNICAL,
            "total_applications": 4,
            "reviewed": 2,
            "shortlisted": 1,
            "rejected": 1,
            "pending": 2,
        }
