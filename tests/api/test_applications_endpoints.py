"""
Tests for the Applications and Answers API endpoints.

Walks an applicant through draft creation, answering, submission and
deletion, and checks that other callers cannot touch the application.
"""
import uuid

import pytest

from recruitment.models import Department
from tests.fixtures.factories import api, auth_headers

pytestmark = pytest.mark.asyncio


async def create_application(client, user, department: str = "technical"):
    return await client.post(
        api("/applications"), json={"department": department}, headers=auth_headers(user)
    )


class TestCreateApplication:
    async def test_create_draft(self, client, applicant):
        response = await create_application(client, applicant)

        assert response.status_code == 201
        application = response.json()["application"]
        assert application["department"] == "technical"
        assert application["submitted"] is False
        assert application["user_id"] == str(applicant.id)

    async def test_second_application_same_department_conflicts(self, client, applicant):
        await create_application(client, applicant)

        response = await create_application(client, applicant)

        assert response.status_code == 409
        assert response.json()["details"]["department"] == "technical"

    async def test_quota_is_enforced(self, client, applicant):
        await create_application(client, applicant, "technical")
        await create_application(client, applicant, "design")

        response = await create_application(client, applicant, "management")

        assert response.status_code == 403
        details = response.json()["details"]
        assert details["current_applications"] == 2
        assert details["maximum_allowed"] == 2

    async def test_unknown_department_rejected(self, client, applicant):
        response = await create_application(client, applicant, "finance")

        assert response.status_code == 400

    async def test_only_applicants_may_apply(self, client, evaluator):
        response = await create_application(client, evaluator)

        assert response.status_code == 403

    async def test_withdrawn_user_cannot_apply(self, client, applicant):
        await client.post(api("/auth/chicken-out"), headers=auth_headers(applicant))

        response = await create_application(client, applicant)

        assert response.status_code == 403

    async def test_deleted_user_with_live_token_is_not_found(self, client, applicant, admin):
        removed = await client.delete(api(f"/users/{applicant.id}"), headers=auth_headers(admin))

        response = await create_application(client, applicant)

        assert removed.status_code == 200
        assert response.status_code == 404
        assert response.json()["error"] == "User not found"


class TestListApplications:
    async def test_me_lists_only_own(self, client, applicant, make_user, make_application):
        other = await make_user()
        await make_application(applicant)
        await make_application(other)

        response = await client.get(api("/applications/me"), headers=auth_headers(applicant))

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["applications"][0]["user_id"] == str(applicant.id)

    async def test_admin_lists_everything(self, client, admin, applicant, make_user, make_application):
        await make_application(applicant)
        await make_application(await make_user())

        response = await client.get(api("/applications"), headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["count"] == 2

    async def test_evaluator_cannot_list_everything(self, client, evaluator):
        response = await client.get(api("/applications"), headers=auth_headers(evaluator))

        assert response.status_code == 403


class TestApplicationLifecycle:
    async def test_full_flow(self, client, applicant, make_question):
        question = await make_question(Department.TECHNICAL, "Favourite language?")
        application_id = (await create_application(client, applicant)).json()["application"]["id"]

        questions = await client.get(
            api(f"/questions/application/{application_id}"), headers=auth_headers(applicant)
        )
        assert questions.json()["count"] == 1
        assert questions.json()["department"] == "technical"

        saved = await client.patch(
            api(f"/applications/{application_id}/save"),
            json={"answers": [{"question_id": str(question.id), "body": "Python"}]},
            headers=auth_headers(applicant),
        )
        assert saved.status_code == 200
        assert saved.json()["count"] == 1

        overwritten = await client.post(
            api("/answers"),
            json={"application_id": application_id, "question_id": str(question.id), "body": "Rust"},
            headers=auth_headers(applicant),
        )
        assert overwritten.status_code == 200
        assert overwritten.json()["answer"]["id"] == saved.json()["answers"][0]["id"]

        submitted = await client.post(
            api(f"/applications/{application_id}/submit"), headers=auth_headers(applicant)
        )
        assert submitted.status_code == 200
        assert submitted.json()["message"] == "Application submitted successfully"
        assert submitted.json()["application"]["submitted"] is True

        again = await client.post(api(f"/applications/{application_id}/submit"), headers=auth_headers(applicant))
        assert again.status_code == 200
        assert again.json()["message"] == "Application already submitted"

        locked = await client.patch(
            api(f"/applications/{application_id}/save"),
            json={"answers": [{"question_id": str(question.id), "body": "Go"}]},
            headers=auth_headers(applicant),
        )
        assert locked.status_code == 409

        answers = await client.get(
            api(f"/answers/application/{application_id}"), headers=auth_headers(applicant)
        )
        assert [a["body"] for a in answers.json()["answers"]] == ["Rust"]

        deleted = await client.delete(api(f"/applications/{application_id}"), headers=auth_headers(applicant))
        assert deleted.status_code == 409

    async def test_save_with_question_from_other_department_stores_nothing(
        self, client, applicant, make_question
    ):
        good = await make_question(Department.TECHNICAL)
        bad = await make_question(Department.DESIGN)
        application_id = (await create_application(client, applicant)).json()["application"]["id"]

        response = await client.patch(
            api(f"/applications/{application_id}/save"),
            json={
                "answers": [
                    {"question_id": str(good.id), "body": "fine"},
                    {"question_id": str(bad.id), "body": "wrong department"},
                ]
            },
            headers=auth_headers(applicant),
        )

        assert response.status_code == 400
        assert response.json()["details"]["question_department"] == "design"
        answers = await client.get(
            api(f"/answers/application/{application_id}"), headers=auth_headers(applicant)
        )
        assert answers.json()["count"] == 0

    async def test_empty_answer_batch_rejected(self, client, applicant):
        application_id = (await create_application(client, applicant)).json()["application"]["id"]

        response = await client.patch(
            api(f"/applications/{application_id}/save"), json={"answers": []}, headers=auth_headers(applicant)
        )

        assert response.status_code == 400

    async def test_delete_draft_removes_answers(self, client, applicant, admin, make_question):
        question = await make_question()
        application_id = (await create_application(client, applicant)).json()["application"]["id"]
        await client.post(
            api("/answers"),
            json={"application_id": application_id, "question_id": str(question.id), "body": "hi"},
            headers=auth_headers(applicant),
        )

        response = await client.delete(api(f"/applications/{application_id}"), headers=auth_headers(applicant))

        assert response.status_code == 200
        mine = await client.get(api("/applications/me"), headers=auth_headers(applicant))
        assert mine.json()["count"] == 0
        answers = await client.get(api(f"/answers/user/{applicant.id}"), headers=auth_headers(admin))
        assert answers.json()["count"] == 0

    async def test_delete_single_answer(self, client, applicant, make_question):
        question = await make_question()
        application_id = (await create_application(client, applicant)).json()["application"]["id"]
        answer = await client.post(
            api("/answers"),
            json={"application_id": application_id, "question_id": str(question.id), "body": "hi"},
            headers=auth_headers(applicant),
        )
        answer_id = answer.json()["answer"]["id"]

        first = await client.delete(api(f"/answers/{answer_id}"), headers=auth_headers(applicant))
        second = await client.delete(api(f"/answers/{answer_id}"), headers=auth_headers(applicant))

        assert first.status_code == 200
        assert second.status_code == 404

    async def test_answer_on_submitted_application_is_locked(self, client, applicant, make_question):
        question = await make_question()
        application_id = (await create_application(client, applicant)).json()["application"]["id"]
        answer = await client.post(
            api("/answers"),
            json={"application_id": application_id, "question_id": str(question.id), "body": "final"},
            headers=auth_headers(applicant),
        )
        await client.post(api(f"/applications/{application_id}/submit"), headers=auth_headers(applicant))

        response = await client.delete(
            api(f"/answers/{answer.json()['answer']['id']}"), headers=auth_headers(applicant)
        )

        assert response.status_code == 409
        kept = await client.get(api(f"/answers/application/{application_id}"), headers=auth_headers(applicant))
        assert kept.json()["count"] == 1

    async def test_other_user_cannot_delete_answer(self, client, applicant, make_user, make_question):
        intruder = await make_user()
        question = await make_question()
        application_id = (await create_application(client, applicant)).json()["application"]["id"]
        answer = await client.post(
            api("/answers"),
            json={"application_id": application_id, "question_id": str(question.id), "body": "mine"},
            headers=auth_headers(applicant),
        )

        response = await client.delete(
            api(f"/answers/{answer.json()['answer']['id']}"), headers=auth_headers(intruder)
        )

        assert response.status_code == 404
        kept = await client.get(api(f"/answers/application/{application_id}"), headers=auth_headers(applicant))
        assert kept.json()["count"] == 1


class TestOwnership:
    async def test_other_user_sees_not_found(self, client, applicant, make_user, make_application, make_question):
        intruder = await make_user()
        question = await make_question()
        application = await make_application(applicant)
        headers = auth_headers(intruder)

        submit = await client.post(api(f"/applications/{application.id}/submit"), headers=headers)
        save = await client.patch(
            api(f"/applications/{application.id}/save"),
            json={"answers": [{"question_id": str(question.id), "body": "x"}]},
            headers=headers,
        )
        delete = await client.delete(api(f"/applications/{application.id}"), headers=headers)
        answers = await client.get(api(f"/answers/application/{application.id}"), headers=headers)
        questions = await client.get(api(f"/questions/application/{application.id}"), headers=headers)

        for response in (submit, save, delete, answers, questions):
            assert response.status_code == 404
            assert response.json()["error"] == "Application not found or access denied"

    async def test_unknown_application(self, client, applicant):
        response = await client.post(
            api(f"/applications/{uuid.uuid4()}/submit"), headers=auth_headers(applicant)
        )

        assert response.status_code == 404

    async def test_malformed_id_is_bad_request(self, client, applicant):
        response = await client.post(api("/applications/not-a-uuid/submit"), headers=auth_headers(applicant))

        assert response.status_code == 400


class TestUserAnswers:
    async def test_evaluator_reads_answers_by_user(self, client, applicant, evaluator, make_question):
        question = await make_question()
        application_id = (await create_application(client, applicant)).json()["application"]["id"]
        await client.post(
            api("/answers"),
            json={"application_id": application_id, "question_id": str(question.id), "body": "hello"},
            headers=auth_headers(applicant),
        )

        response = await client.get(api(f"/answers/user/{applicant.id}"), headers=auth_headers(evaluator))

        assert response.status_code == 200
        assert response.json()["user_id"] == str(applicant.id)
        assert response.json()["answers"][0]["body"] == "hello"

    async def test_applicant_cannot_read_answers_by_user(self, client, applicant):
        response = await client.get(api(f"/answers/user/{applicant.id}"), headers=auth_headers(applicant))

        assert response.status_code == 403
