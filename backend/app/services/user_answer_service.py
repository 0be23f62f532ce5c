"""
Eclairum Backend — User Answer Service
========================================

What:  Records the answer a user picked for a question while practising.
How:   Checks the answer belongs to the question and the question to one of
       the user's tasks, then appends a user_answers row. The counts of
       these rows drive QuestionService.select_questions_for_user.
Who:   Called by POST /api/users/{user_id}/user-answers.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import (
    DatabaseError,
    InvalidAnswerError,
    QuestionNotFoundError,
    UserNotFoundError,
)
from app.models.user_answer import UserAnswer
from app.repositories import (
    AnswerRepository,
    QuestionRepository,
    QuizGenerationTaskRepository,
    UserAnswerRepository,
    UserRepository,
)
from app.schemas.quiz import UserAnswerResponse
from app.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class UserAnswerService:
    async def submit_answer(
        self,
        uow: UnitOfWork,
        user_id: UUID,
        question_id: UUID,
        answer_id: UUID,
    ) -> UserAnswerResponse:
        """
        Raises:
            UserNotFoundError: no such user (→ 404)
            InvalidAnswerError: unknown answer, or it belongs to another question (→ 400)
            QuestionNotFoundError: question missing or on someone else's task (→ 404)
        """
        try:
            async with uow.transaction():
                if await UserRepository(uow).find_by_id(user_id) is None:
                    raise UserNotFoundError(str(user_id))

                answer = await AnswerRepository(uow).find_by_id(answer_id)
                if answer is None:
                    raise InvalidAnswerError(
                        f"Answer with ID '{answer_id}' was not found", field="answer_id"
                    )
                if answer.question_id != question_id:
                    raise InvalidAnswerError(
                        f"Answer does not belong to question {question_id}",
                        field="answer_id",
                    )

                question = await QuestionRepository(uow).find_by_id(question_id)
                task = None
                if question is not None:
                    task = await QuizGenerationTaskRepository(uow).find_by_id(
                        question.quiz_generation_task_id
                    )
                if task is None or not task.is_owned_by(user_id):
                    raise QuestionNotFoundError(str(question_id))

                user_answer = await UserAnswerRepository(uow).save(
                    UserAnswer(user_id=user_id, question_id=question_id, answer_id=answer_id)
                )
        except SQLAlchemyError as e:
            logger.error("Database error saving answer of user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not save your answer. Please try again.",
                context={"user_id": str(user_id), "question_id": str(question_id)},
            ) from e

        logger.info(
            "User %s answered question %s (%s)",
            user_id,
            question_id,
            "correct" if answer.is_correct else "wrong",
        )
        return UserAnswerResponse(
            id=user_answer.id,
            question_id=question_id,
            answer_id=answer_id,
            is_correct=answer.is_correct,
            created_at=user_answer.created_at,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
user_answer_service = UserAnswerService()
