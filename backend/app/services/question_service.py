"""
Eclairum Backend — Question Service
=====================================

What:  Lets task owners add their own questions to a quiz, edit existing ones,
       and pick questions to practise.
Who:   Called by the question route handlers.

Question Rules (checked before any database work):
    - content is not blank
    - at least two answers
    - at least one answer is correct
    - every answer has content
"""

import logging
import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import (
    DatabaseError,
    InvalidQuestionError,
    QuestionNotFoundError,
    UserNotFoundError,
)
from app.models.quiz import Answer, Question
from app.repositories import (
    AnswerRepository,
    QuestionRepository,
    QuizGenerationTaskRepository,
    UserAnswerRepository,
    UserRepository,
)
from app.schemas.quiz import AnswerInput, AnswerResponse, QuestionResponse
from app.services.question_selector import select_questions
from app.services.quiz_generation_task_service import load_owned_task
from app.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def validate_question(content: str, answers: List[AnswerInput]) -> None:
    """Raises InvalidQuestionError on the first broken rule."""
    if not content or not content.strip():
        raise InvalidQuestionError("Question content cannot be empty", field="content")
    if len(answers) < 2:
        raise InvalidQuestionError("A question needs at least two answers", field="answers")
    if not any(answer.is_correct for answer in answers):
        raise InvalidQuestionError(
            "A question needs at least one correct answer", field="answers"
        )
    if any(not answer.content or not answer.content.strip() for answer in answers):
        raise InvalidQuestionError("Every answer must have content", field="answers")


class QuestionService:
    async def add_question(
        self,
        uow: UnitOfWork,
        user_id: UUID,
        task_id: UUID,
        content: str,
        answers: List[AnswerInput],
    ) -> QuestionResponse:
        """
        Add a user-authored question with its answers to an owned task.

        The question, its answers and the task's updated_at bump commit
        together.

        Raises:
            InvalidQuestionError: a question rule is broken (→ 400)
            TaskNotFoundError / UnauthorizedTaskAccessError (→ 404)
        """
        validate_question(content, answers)

        try:
            async with uow.transaction():
                task = await load_owned_task(uow, user_id, task_id)

                question = Question(
                    id=uuid.uuid4(),
                    quiz_generation_task_id=task.id,
                    content=content.strip(),
                    position=max((q.position for q in task.questions), default=-1) + 1,
                )
                await QuestionRepository(uow).save(question)

                saved_answers = await AnswerRepository(uow).save_many([
                    Answer(
                        question_id=question.id,
                        content=answer.content.strip(),
                        is_correct=answer.is_correct,
                        position=i,
                    )
                    for i, answer in enumerate(answers)
                ])

                task.touch()
                await QuizGenerationTaskRepository(uow).save(task)
        except SQLAlchemyError as e:
            logger.error("Database error adding question to task %s: %s", task_id, str(e))
            raise DatabaseError(
                message="Could not add the question. Please try again.",
                context={"task_id": str(task_id)},
            ) from e

        logger.info("Question %s added to task %s", question.id, task_id)
        return QuestionResponse(
            id=question.id,
            content=question.content,
            answers=[AnswerResponse.model_validate(a) for a in saved_answers],
        )

    async def edit_question(
        self,
        uow: UnitOfWork,
        user_id: UUID,
        question_id: UUID,
        content: str,
    ) -> QuestionResponse:
        """
        Change a question's text. Questions on other users' tasks are
        reported as not found.
        """
        if not content or not content.strip():
            raise InvalidQuestionError("Question content cannot be empty", field="content")

        try:
            async with uow.transaction():
                question_repo = QuestionRepository(uow)
                question = await question_repo.find_by_id(question_id)
                if question is None:
                    raise QuestionNotFoundError(str(question_id))

                task = await QuizGenerationTaskRepository(uow).find_by_id(
                    question.quiz_generation_task_id
                )
                if task is None or not task.is_owned_by(user_id):
                    raise QuestionNotFoundError(str(question_id))

                question.content = content.strip()
                await question_repo.save(question)
                task.touch()
                await QuizGenerationTaskRepository(uow).save(task)

                response = QuestionResponse.model_validate(question)
        except SQLAlchemyError as e:
            logger.error("Database error editing question %s: %s", question_id, str(e))
            raise DatabaseError(
                message="Could not update the question. Please try again.",
                context={"question_id": str(question_id)},
            ) from e

        return response

    async def select_questions_for_user(
        self,
        uow: UnitOfWork,
        user_id: UUID,
        limit: int = 3,
        task_id: Optional[UUID] = None,
    ) -> List[QuestionResponse]:
        """
        Questions to practise next, favouring ones the user answered least.

        Draws from one owned task when `task_id` is given, otherwise from
        every live task of the user. See app.services.question_selector.
        """
        try:
            if await UserRepository(uow).find_by_id(user_id) is None:
                raise UserNotFoundError(str(user_id))
            if limit <= 0:
                return []

            if task_id is not None:
                task = await load_owned_task(uow, user_id, task_id)
                questions = list(task.questions)
            else:
                questions = await QuestionRepository(uow).find_by_user_id(user_id)
            if not questions:
                return []

            frequencies = await UserAnswerRepository(uow).find_question_answer_frequencies(
                user_id
            )
        except SQLAlchemyError as e:
            logger.error("Database error selecting questions for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not load questions. Please try again.",
                context={"user_id": str(user_id)},
            ) from e

        selected = select_questions(questions, frequencies, limit)
        return [QuestionResponse.model_validate(q) for q in selected]


# ── Singleton Instance ────────────────────────────────────────────────────
question_service = QuestionService()
