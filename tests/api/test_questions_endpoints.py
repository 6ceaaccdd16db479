"""Tests for the Questions API endpoints."""
import uuid

import pytest

from recruitment.models import Department
from tests.fixtures.factories import api, auth_headers

pytestmark = pytest.mark.asyncio


class TestPublicReads:
    async def test_list_by_department_needs_no_token(self, client, make_question):
        await make_question(Department.TECHNICAL, "Q1")
        await make_question(Department.TECHNICAL, "Q2")
        await make_question(Department.DESIGN, "Other")

        response = await client.get(api("/questions"), params={"dept": "Technical"})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["department"] == "technical"
        assert {q["title"] for q in body["questions"]} == {"Q1", "Q2"}

    async def test_department_is_required(self, client):
        response = await client.get(api("/questions"))

        assert response.status_code == 400
        assert response.json()["error"] == "Query parameter 'dept' is required"

    async def test_unknown_department(self, client):
        response = await client.get(api("/questions"), params={"dept": "finance"})

        assert response.status_code == 400
        assert "technical" in response.json()["details"]["allowed"]

    async def test_get_by_id(self, client, make_question):
        question = await make_question(title="Tell us about a project")

        response = await client.get(api(f"/questions/{question.id}"))

        assert response.status_code == 200
        assert response.json()["question"]["title"] == "Tell us about a project"

    async def test_get_missing(self, client):
        response = await client.get(api(f"/questions/{uuid.uuid4()}"))

        assert response.status_code == 404
        assert response.json()["error"] == "Question not found"


class TestAdminWrites:
    async def test_create_and_delete(self, client, admin):
        created = await client.post(
            api("/questions"),
            json={"department": "design", "title": "  Portfolio  ", "body": "Share a link."},
            headers=auth_headers(admin),
        )
        assert created.status_code == 201
        question = created.json()["question"]
        assert question["title"] == "Portfolio"

        deleted = await client.delete(api(f"/questions/{question['id']}"), headers=auth_headers(admin))
        assert deleted.status_code == 200

        missing = await client.get(api(f"/questions/{question['id']}"))
        assert missing.status_code == 404

    async def test_create_validates_body(self, client, admin):
        response = await client.post(
            api("/questions"),
            json={"department": "design", "title": ""},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        fields = {item["field"] for item in response.json()["details"]}
        assert {"title", "body"} <= fields

    async def test_evaluator_lists_all(self, client, evaluator, make_question):
        await make_question(Department.TECHNICAL)
        await make_question(Department.MANAGEMENT)

        response = await client.get(api("/questions/all"), headers=auth_headers(evaluator))

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert response.json()["department"] is None
