"""
Eclairum Backend — Question Service Tests
===========================================

What we test:
    ✅ Each question rule rejects before the database is touched
    ✅ Question and answers are stored together and bump the task
    ✅ Answer failure rolls back the question too
    ✅ Edits are owner-only and reported as not found otherwise
    ✅ Added questions go after the existing ones
    ✅ Practice selection prefers questions the user answered least
"""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from app.database import unit_of_work_scope
from app.exceptions import (
    InvalidQuestionError,
    QuestionNotFoundError,
    TaskNotFoundError,
    UnauthorizedTaskAccessError,
    UserNotFoundError,
)
from app.models.quiz import Question
from app.repositories import AnswerRepository
from app.schemas.quiz import AnswerInput
from app.services.question_service import QuestionService
from app.services.user_answer_service import UserAnswerService
from app.services.quiz_generation_task_service import QuizGenerationTaskService
from app.services.user_service import UserService


def answers(*pairs):
    return [AnswerInput(content=c, is_correct=ok) for c, ok in pairs]


VALID_ANSWERS = answers(("Paris", True), ("Lyon", False), ("Nice", False))


async def owner_with_task(session_factory, email="ada@example.com"):
    async with unit_of_work_scope(session_factory) as uow:
        user = await UserService().create_user(uow, email)
        task = await QuizGenerationTaskService().create_task(uow, user.id, "French geography")
    return user, task


class TestQuestionRules:

    def setup_method(self):
        self.service = QuestionService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content, answer_list, message",
        [
            ("  ", VALID_ANSWERS, "empty"),
            ("Capital?", answers(("Paris", True)), "at least two"),
            ("Capital?", answers(("Paris", False), ("Lyon", False)), "correct"),
            ("Capital?", answers(("Paris", True), ("   ", False)), "content"),
        ],
    )
    async def test_rule_violations(self, mock_uow, content, answer_list, message):
        with pytest.raises(InvalidQuestionError, match=message):
            await self.service.add_question(
                mock_uow, uuid.uuid4(), uuid.uuid4(), content, answer_list
            )

        assert mock_uow.data_source.calls == []


class TestAddQuestion:

    def setup_method(self):
        self.service = QuestionService()

    @pytest.mark.asyncio
    async def test_add_question_stores_answers(self, session_factory):
        user, task = await owner_with_task(session_factory)

        async with unit_of_work_scope(session_factory) as uow:
            created = await self.service.add_question(
                uow, user.id, task.id, " Capital of France? ", VALID_ANSWERS
            )

        assert created.content == "Capital of France?"
        assert [a.content for a in created.answers] == ["Paris", "Lyon", "Nice"]

        async with unit_of_work_scope(session_factory) as uow:
            detail = await QuizGenerationTaskService().get_task(uow, user.id, task.id)
        assert [q.id for q in detail.questions] == [created.id]
        assert detail.updated_at.replace(tzinfo=None) > task.updated_at.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_added_questions_are_appended_in_order(self, session_factory):
        user, task = await owner_with_task(session_factory)

        async with unit_of_work_scope(session_factory) as uow:
            first = await self.service.add_question(uow, user.id, task.id, "First?", VALID_ANSWERS)
        async with unit_of_work_scope(session_factory) as uow:
            second = await self.service.add_question(
                uow, user.id, task.id, "Second?", VALID_ANSWERS
            )

        async with session_factory() as session:
            rows = (
                await session.execute(
                    select(Question.id, Question.position).order_by(Question.position)
                )
            ).all()
        assert [tuple(r) for r in rows] == [(first.id, 0), (second.id, 1)]

        async with unit_of_work_scope(session_factory) as uow:
            detail = await QuizGenerationTaskService().get_task(uow, user.id, task.id)
        assert [q.content for q in detail.questions] == ["First?", "Second?"]
        assert [a.content for a in detail.questions[1].answers] == ["Paris", "Lyon", "Nice"]

    @pytest.mark.asyncio
    async def test_answer_failure_rolls_back_question(self, session_factory):
        user, task = await owner_with_task(session_factory)

        with patch.object(AnswerRepository, "save_many", side_effect=RuntimeError("boom")):
            async with unit_of_work_scope(session_factory) as uow:
                with pytest.raises(RuntimeError):
                    await self.service.add_question(uow, user.id, task.id, "Q?", VALID_ANSWERS)

        async with session_factory() as session:
            assert await session.scalar(select(func.count()).select_from(Question)) == 0

    @pytest.mark.asyncio
    async def test_add_to_someone_elses_task(self, session_factory):
        _, task = await owner_with_task(session_factory)
        intruder, _ = await owner_with_task(session_factory, email="eve@example.com")

        async with unit_of_work_scope(session_factory) as uow:
            with pytest.raises(UnauthorizedTaskAccessError):
                await self.service.add_question(uow, intruder.id, task.id, "Q?", VALID_ANSWERS)

    @pytest.mark.asyncio
    async def test_add_to_missing_task(self, session_factory):
        user, _ = await owner_with_task(session_factory)

        async with unit_of_work_scope(session_factory) as uow:
            with pytest.raises(TaskNotFoundError):
                await self.service.add_question(
                    uow, user.id, uuid.uuid4(), "Q?", VALID_ANSWERS
                )


class TestEditQuestion:

    def setup_method(self):
        self.service = QuestionService()

    @pytest.mark.asyncio
    async def test_owner_can_edit(self, session_factory):
        user, task = await owner_with_task(session_factory)
        async with unit_of_work_scope(session_factory) as uow:
            created = await self.service.add_question(uow, user.id, task.id, "Old?", VALID_ANSWERS)

        async with unit_of_work_scope(session_factory) as uow:
            edited = await self.service.edit_question(uow, user.id, created.id, "New?")

        assert edited.content == "New?"
        assert len(edited.answers) == 3

    @pytest.mark.asyncio
    async def test_non_owner_sees_not_found(self, session_factory):
        user, task = await owner_with_task(session_factory)
        intruder, _ = await owner_with_task(session_factory, email="eve@example.com")
        async with unit_of_work_scope(session_factory) as uow:
            created = await self.service.add_question(uow, user.id, task.id, "Old?", VALID_ANSWERS)

        async with unit_of_work_scope(session_factory) as uow:
            with pytest.raises(QuestionNotFoundError):
                await self.service.edit_question(uow, intruder.id, created.id, "Hijacked?")

    @pytest.mark.asyncio
    async def test_blank_edit_rejected(self, mock_uow):
        with pytest.raises(InvalidQuestionError):
            await self.service.edit_question(mock_uow, uuid.uuid4(), uuid.uuid4(), " ")

        assert mock_uow.data_source.calls == []


class TestSelectQuestionsForUser:

    def setup_method(self):
        self.service = QuestionService()

    async def add_questions(self, session_factory, user_id, task_id, *contents):
        created = []
        for content in contents:
            async with unit_of_work_scope(session_factory) as uow:
                created.append(
                    await self.service.add_question(uow, user_id, task_id, content, VALID_ANSWERS)
                )
        return created

    async def answer(self, session_factory, user_id, question):
        async with unit_of_work_scope(session_factory) as uow:
            await UserAnswerService().submit_answer(
                uow, user_id, question.id, question.answers[0].id
            )

    @pytest.mark.asyncio
    async def test_unanswered_questions_come_first(self, session_factory):
        user, task = await owner_with_task(session_factory)
        q1, q2, q3 = await self.add_questions(session_factory, user.id, task.id, "A?", "B?", "C?")
        await self.answer(session_factory, user.id, q1)
        await self.answer(session_factory, user.id, q2)
        await self.answer(session_factory, user.id, q2)

        async with unit_of_work_scope(session_factory) as uow:
            picked = await self.service.select_questions_for_user(uow, user.id, limit=1)
        assert [q.id for q in picked] == [q3.id]

        async with unit_of_work_scope(session_factory) as uow:
            picked = await self.service.select_questions_for_user(uow, user.id, limit=2)
        assert {q.id for q in picked} == {q3.id, q1.id}

    @pytest.mark.asyncio
    async def test_limit_caps_and_only_own_questions_are_drawn(self, session_factory):
        user, task = await owner_with_task(session_factory)
        other, other_task = await owner_with_task(session_factory, email="eve@example.com")
        mine = await self.add_questions(session_factory, user.id, task.id, "A?", "B?")
        await self.add_questions(session_factory, other.id, other_task.id, "Theirs?")

        async with unit_of_work_scope(session_factory) as uow:
            picked = await self.service.select_questions_for_user(uow, user.id, limit=10)

        assert {q.id for q in picked} == {q.id for q in mine}

    @pytest.mark.asyncio
    async def test_task_filter(self, session_factory):
        user, task = await owner_with_task(session_factory)
        async with unit_of_work_scope(session_factory) as uow:
            second_task = await QuizGenerationTaskService().create_task(uow, user.id, "Rivers")
        await self.add_questions(session_factory, user.id, task.id, "A?")
        (river,) = await self.add_questions(session_factory, user.id, second_task.id, "Seine?")

        async with unit_of_work_scope(session_factory) as uow:
            picked = await self.service.select_questions_for_user(
                uow, user.id, limit=5, task_id=second_task.id
            )

        assert [q.id for q in picked] == [river.id]

    @pytest.mark.asyncio
    async def test_someone_elses_task_is_refused(self, session_factory):
        _, task = await owner_with_task(session_factory)
        intruder, _ = await owner_with_task(session_factory, email="eve@example.com")

        async with unit_of_work_scope(session_factory) as uow:
            with pytest.raises(UnauthorizedTaskAccessError):
                await self.service.select_questions_for_user(
                    uow, intruder.id, task_id=task.id
                )

    @pytest.mark.asyncio
    async def test_unknown_user(self, session_factory):
        async with unit_of_work_scope(session_factory) as uow:
            with pytest.raises(UserNotFoundError):
                await self.service.select_questions_for_user(uow, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_no_questions_yet(self, session_factory):
        user, _ = await owner_with_task(session_factory)

        async with unit_of_work_scope(session_factory) as uow:
            assert await self.service.select_questions_for_user(uow, user.id) == []
