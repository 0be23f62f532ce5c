"""
Eclairum Backend — Answer Service
===================================

What:  Lets task owners correct an answer's text or which answer is right.
Who:   Called by PUT /api/users/{user_id}/answers/{answer_id}.

Ownership is resolved answer → question → task; answers on other users'
tasks are reported as not found, like questions are.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import (
    AnswerNotFoundError,
    DatabaseError,
    InvalidAnswerError,
    UserNotFoundError,
)
from app.repositories import (
    AnswerRepository,
    QuestionRepository,
    QuizGenerationTaskRepository,
    UserRepository,
)
from app.schemas.quiz import AnswerResponse
from app.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class AnswerService:
    async def edit_answer(
        self,
        uow: UnitOfWork,
        user_id: UUID,
        answer_id: UUID,
        content: str,
        is_correct: bool,
    ) -> AnswerResponse:
        """
        Update an answer and bump its task's updated_at, atomically.

        Raises:
            InvalidAnswerError: blank content, or the edit would leave the
                question without a correct answer (→ 400)
            UserNotFoundError / AnswerNotFoundError (→ 404)
        """
        if not content or not content.strip():
            raise InvalidAnswerError("Answer content cannot be empty", field="content")

        try:
            async with uow.transaction():
                if await UserRepository(uow).find_by_id(user_id) is None:
                    raise UserNotFoundError(str(user_id))

                answer_repo = AnswerRepository(uow)
                answer = await answer_repo.find_by_id(answer_id)
                if answer is None:
                    raise AnswerNotFoundError(str(answer_id))

                question = await QuestionRepository(uow).find_by_id(answer.question_id)
                if question is None:
                    raise AnswerNotFoundError(str(answer_id))

                task_repo = QuizGenerationTaskRepository(uow)
                task = await task_repo.find_by_id(question.quiz_generation_task_id)
                if task is None or not task.is_owned_by(user_id):
                    raise AnswerNotFoundError(str(answer_id))

                others_correct = any(
                    a.is_correct for a in question.answers if a.id != answer.id
                )
                if not is_correct and not others_correct:
                    raise InvalidAnswerError(
                        "A question needs at least one correct answer", field="is_correct"
                    )

                answer.content = content.strip()
                answer.is_correct = is_correct
                await answer_repo.save(answer)
                task.touch()
                await task_repo.save(task)

                response = AnswerResponse.model_validate(answer)
        except SQLAlchemyError as e:
            logger.error("Database error editing answer %s: %s", answer_id, str(e))
            raise DatabaseError(
                message="Could not update the answer. Please try again.",
                context={"answer_id": str(answer_id)},
            ) from e

        return response


# ── Singleton Instance ────────────────────────────────────────────────────
answer_service = AnswerService()
