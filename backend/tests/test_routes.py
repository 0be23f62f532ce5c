"""
Eclairum Backend — API Route Tests
====================================

What:  End-to-end HTTP tests through the FastAPI app (middleware, exception
       handlers, request-scoped UnitOfWork and background generation).
How:   `test_client` from conftest; SQLite per test, Gemini mocked.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from app.routes import health as health_route
from app.services.quiz_generation_task_service import quiz_generation_task_service


async def register(client, email="ada@example.com") -> dict:
    response = await client.post("/api/users", json={"email": email})
    assert response.status_code == 201
    return response.json()


async def start_task(client, user_id, text="Plants turn light into sugar.") -> dict:
    response = await client.post(
        f"/api/users/{user_id}/quiz-generation-tasks", json={"text": text}
    )
    assert response.status_code == 201
    return response.json()


class TestUserRoutes:

    @pytest.mark.asyncio
    async def test_register_and_fetch(self, test_client):
        user = await register(test_client, "Ada@Example.com")

        response = await test_client.get(f"/api/users/{user['id']}")

        assert response.status_code == 200
        assert response.json()["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, test_client):
        await register(test_client)

        response = await test_client.post("/api/users", json={"email": "ada@example.com"})

        assert response.status_code == 409
        assert response.json()["error"] == "user_already_exists"

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, test_client):
        response = await test_client.get(f"/api/users/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestQuizGenerationTaskRoutes:

    @pytest.mark.asyncio
    async def test_create_returns_in_progress_and_generates_in_background(self, test_client):
        user = await register(test_client)

        task = await start_task(test_client, user["id"])

        assert task["status"] == "IN_PROGRESS"
        test_client.quiz_generator.generate_quiz.assert_awaited_once_with(
            "Plants turn light into sugar."
        )

        response = await test_client.get(
            f"/api/users/{user['id']}/quiz-generation-tasks/{task['id']}"
        )
        detail = response.json()
        assert detail["status"] == "COMPLETED"
        assert detail["title"] == "Photosynthesis Basics"
        assert len(detail["questions"]) == 2

    @pytest.mark.asyncio
    async def test_blank_text_is_400(self, test_client):
        user = await register(test_client)

        response = await test_client.post(
            f"/api/users/{user['id']}/quiz-generation-tasks", json={"text": "   "}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        test_client.quiz_generator.generate_quiz.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_sets_total_count_header(self, test_client):
        user = await register(test_client)
        for i in range(3):
            await start_task(test_client, user["id"], text=f"Text {i}")

        response = await test_client.get(
            f"/api/users/{user['id']}/quiz-generation-tasks", params={"page": 1, "limit": 2}
        )

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "3"
        body = response.json()
        assert len(body["data"]) == 2
        assert body["meta"]["total_pages"] == 2

    @pytest.mark.asyncio
    async def test_other_users_task_looks_missing(self, test_client):
        owner = await register(test_client)
        intruder = await register(test_client, "eve@example.com")
        task = await start_task(test_client, owner["id"])

        response = await test_client.get(
            f"/api/users/{intruder['id']}/quiz-generation-tasks/{task['id']}"
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, test_client):
        user = await register(test_client)
        task = await start_task(test_client, user["id"])
        url = f"/api/users/{user['id']}/quiz-generation-tasks/{task['id']}"

        response = await test_client.delete(url)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert (await test_client.get(url)).status_code == 404


    @pytest.mark.asyncio
    async def test_ongoing_lists_only_unfinished_tasks(self, test_client):
        user = await register(test_client)
        await start_task(test_client, user["id"], text="Finished")
        with patch.object(quiz_generation_task_service, "process_task", AsyncMock()):
            running = await start_task(test_client, user["id"], text="Still running")

        response = await test_client.get(
            f"/api/users/{user['id']}/quiz-generation-tasks/ongoing"
        )

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [running["id"]]

    @pytest.mark.asyncio
    async def test_ongoing_for_unknown_user_is_404(self, test_client):
        response = await test_client.get(
            f"/api/users/{uuid.uuid4()}/quiz-generation-tasks/ongoing"
        )

        assert response.status_code == 404

class TestQuestionRoutes:

    @pytest.mark.asyncio
    async def test_add_and_edit_question(self, test_client):
        user = await register(test_client)
        task = await start_task(test_client, user["id"])

        response = await test_client.post(
            f"/api/users/{user['id']}/quiz-generation-tasks/{task['id']}/questions",
            json={
                "content": "What do leaves contain?",
                "answers": [
                    {"content": "Chloroplasts", "is_correct": True},
                    {"content": "Bones", "is_correct": False},
                ],
            },
        )
        assert response.status_code == 201
        question = response.json()

        response = await test_client.patch(
            f"/api/users/{user['id']}/questions/{question['id']}",
            json={"content": "What do most leaves contain?"},
        )

        assert response.status_code == 200
        assert response.json()["content"] == "What do most leaves contain?"

    @pytest.mark.asyncio
    async def test_question_without_correct_answer_is_400(self, test_client):
        user = await register(test_client)
        task = await start_task(test_client, user["id"])

        response = await test_client.post(
            f"/api/users/{user['id']}/quiz-generation-tasks/{task['id']}/questions",
            json={
                "content": "Q?",
                "answers": [
                    {"content": "A", "is_correct": False},
                    {"content": "B", "is_correct": False},
                ],
            },
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_edit_unknown_question_is_404(self, test_client):
        user = await register(test_client)

        response = await test_client.patch(
            f"/api/users/{user['id']}/questions/{uuid.uuid4()}", json={"content": "New?"}
        )

        assert response.status_code == 404


class TestPracticeRoutes:

    async def generated_quiz(self, client):
        user = await register(client)
        task = await start_task(client, user["id"])
        response = await client.get(
            f"/api/users/{user['id']}/quiz-generation-tasks/{task['id']}"
        )
        return user, response.json()

    @pytest.mark.asyncio
    async def test_answer_then_get_least_answered_question(self, test_client):
        user, detail = await self.generated_quiz(test_client)
        first, second = detail["questions"]

        response = await test_client.post(
            f"/api/users/{user['id']}/user-answers",
            json={"question_id": first["id"], "answer_id": first["answers"][0]["id"]},
        )
        assert response.status_code == 201
        assert response.json()["is_correct"] is True

        response = await test_client.get(
            f"/api/users/{user['id']}/questions", params={"limit": 1}
        )

        assert response.status_code == 200
        assert [q["id"] for q in response.json()] == [second["id"]]

    @pytest.mark.asyncio
    async def test_answer_from_another_question_is_400(self, test_client):
        user, detail = await self.generated_quiz(test_client)
        first, second = detail["questions"]

        response = await test_client.post(
            f"/api/users/{user['id']}/user-answers",
            json={"question_id": first["id"], "answer_id": second["answers"][0]["id"]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_edit_answer(self, test_client):
        user, detail = await self.generated_quiz(test_client)
        wrong = detail["questions"][0]["answers"][1]

        response = await test_client.put(
            f"/api/users/{user['id']}/answers/{wrong['id']}",
            json={"content": "Carotene", "is_correct": True},
        )

        assert response.status_code == 200
        assert response.json() == {"id": wrong["id"], "content": "Carotene", "is_correct": True}

    @pytest.mark.asyncio
    async def test_edit_someone_elses_answer_is_404(self, test_client):
        _, detail = await self.generated_quiz(test_client)
        intruder = await register(test_client, "eve@example.com")
        answer = detail["questions"][0]["answers"][0]

        response = await test_client.put(
            f"/api/users/{intruder['id']}/answers/{answer['id']}",
            json={"content": "Hijacked", "is_correct": True},
        )

        assert response.status_code == 404

class TestHealthAndMiddleware:

    @pytest.mark.asyncio
    async def test_health_ok(self, test_client):
        with patch.object(
            health_route.quiz_generator, "health_check", AsyncMock(return_value=True)
        ):
            response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["llm"] == "available"

    @pytest.mark.asyncio
    async def test_health_degraded_when_gemini_is_down(self, test_client):
        with patch.object(
            health_route.quiz_generator, "health_check", AsyncMock(return_value=False)
        ):
            response = await test_client.get("/health")

        assert response.json()["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get(
            f"/api/users/{uuid.uuid4()}", headers={"X-Request-ID": "abc123"}
        )

        assert response.headers["X-Request-ID"] == "abc123"
        assert response.json()["request_id"] == "abc123"
