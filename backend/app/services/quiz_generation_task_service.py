"""
Eclairum Backend — Quiz Generation Task Service (Business Logic Orchestrator)
===============================================================================

What:  Creates quiz generation tasks, runs generation in the background, and
       serves/deletes tasks for their owners.
How:   Composes the task/question/answer repositories and the quiz generator.
       Multi-step writes run inside `uow.transaction()` so they commit or roll
       back as a unit.
Who:   Called by the /api/users/{user_id}/quiz-generation-tasks routes.
When:  Per request, plus one background job per created task.

Generation Flow:
    ┌───────────────┐    ┌──────────────┐    ┌──────────────┐    ┌─────────────┐
    │ create_task   │───▶│  commit task │───▶│ process_task │───▶│ COMPLETED   │
    │ (request)     │    │  IN_PROGRESS │    │ (background) │    │ or FAILED   │
    └───────────────┘    └──────────────┘    └──────────────┘    └─────────────┘

    process_task runs after the response is sent, so it opens its own
    UnitOfWork instead of borrowing the (already closed) request's one.
"""

import logging
import uuid
from typing import List
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.database import unit_of_work_scope
from app.exceptions import (
    DatabaseError,
    EclairumError,
    NoQuestionsGeneratedError,
    QuizStorageError,
    RequiredTextContentError,
    TaskNotFoundError,
    UnauthorizedTaskAccessError,
    UserNotFoundError,
)
from app.models.quiz import Answer, Question, QuizGenerationStatus, QuizGenerationTask
from app.repositories import (
    AnswerRepository,
    QuestionRepository,
    QuizGenerationTaskRepository,
    UserRepository,
)
from app.schemas.common import PaginationMeta
from app.schemas.quiz import (
    GeneratedQuiz,
    PaginatedTasksResponse,
    TaskDetailResponse,
    TaskResponse,
)
from app.services.gemini_service import quiz_generator
from app.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


async def load_owned_task(
    uow: UnitOfWork, user_id: UUID, task_id: UUID
) -> QuizGenerationTask:
    """
    Fetch a live task and enforce that `user_id` owns it.

    Raises:
        TaskNotFoundError: missing or soft-deleted
        UnauthorizedTaskAccessError: owned by someone else (also → 404)
    """
    task = await QuizGenerationTaskRepository(uow).find_by_id(task_id)
    if task is None:
        raise TaskNotFoundError(str(task_id))
    if not task.is_owned_by(user_id):
        logger.warning("User %s tried to access task %s owned by another user", user_id, task_id)
        raise UnauthorizedTaskAccessError(task_id=str(task_id), user_id=str(user_id))
    return task


class QuizGenerationTaskService:
    """
    Business logic layer for quiz generation tasks.

    Responsibilities:
        - create_task(): validate, persist IN_PROGRESS (atomic with user check)
        - process_task(): background generation → COMPLETED / FAILED
        - get_task(), list_tasks(), list_ongoing_tasks(): owner-scoped reads
        - delete_task(): atomic soft delete of answers → questions → task

    Error Handling Strategy:
        Our own exceptions propagate as-is. Unexpected SQLAlchemy errors are
        wrapped in DatabaseError (hides internal details).
    """

    async def create_task(
        self, uow: UnitOfWork, user_id: UUID, text: str
    ) -> TaskResponse:
        """
        Raises:
            RequiredTextContentError: text is empty or whitespace (→ 400)
            UserNotFoundError: no such user (→ 404)
        """
        if not text or not text.strip():
            raise RequiredTextContentError(context={"user_id": str(user_id)})

        try:
            async with uow.transaction():
                user = await UserRepository(uow).find_by_id(user_id)
                if user is None:
                    raise UserNotFoundError(str(user_id))

                task = QuizGenerationTask(
                    user_id=user_id,
                    text_content=text,
                    status=QuizGenerationStatus.IN_PROGRESS.value,
                )
                await QuizGenerationTaskRepository(uow).save(task)
        except SQLAlchemyError as e:
            logger.error("Database error creating task for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not create the quiz generation task. Please try again.",
                context={"user_id": str(user_id)},
            ) from e

        logger.info("Quiz generation task %s created for user %s", task.id, user_id)
        return TaskResponse.model_validate(task)

    async def process_task(self, task_id: UUID) -> None:
        """
        Generate the quiz for a task and store it.

        Never raises: failures are logged and recorded on the task as FAILED.
        """
        async with unit_of_work_scope() as uow:
            try:
                # Short transaction: no connection is held while Gemini runs
                async with uow.transaction():
                    task = await QuizGenerationTaskRepository(uow).find_by_id(task_id)
                if task is None:
                    logger.warning("Task %s vanished before generation started", task_id)
                    return
                text_content = task.text_content

                quiz = await quiz_generator.generate_quiz(text_content)
                if not quiz.questions:
                    raise NoQuestionsGeneratedError(text_content)

                await self._store_quiz(uow, task_id, quiz)
                logger.info(
                    "Task %s COMPLETED with %d questions", task_id, len(quiz.questions)
                )

            except Exception as e:
                logger.error("Quiz generation failed for task %s: %s", task_id, str(e))
                message = e.message if isinstance(e, EclairumError) else "Quiz generation failed"
                await self._mark_failed(uow, task_id, message)

    async def _store_quiz(self, uow: UnitOfWork, task_id: UUID, quiz: GeneratedQuiz) -> None:
        """Title, questions, answers and COMPLETED status in one transaction."""
        try:
            async with uow.transaction():
                task_repo = QuizGenerationTaskRepository(uow)
                task = await task_repo.find_by_id(task_id)
                if task is None:
                    raise TaskNotFoundError(str(task_id))

                questions = []
                answers = []
                for position, generated in enumerate(quiz.questions):
                    question = Question(
                        id=uuid.uuid4(),
                        quiz_generation_task_id=task_id,
                        content=generated.question,
                        position=position,
                    )
                    questions.append(question)
                    answers.extend(
                        Answer(
                            question_id=question.id,
                            content=a.text,
                            is_correct=a.is_correct,
                            position=i,
                        )
                        for i, a in enumerate(generated.answers)
                    )

                await QuestionRepository(uow).save_many(questions)
                await AnswerRepository(uow).save_many(answers)

                task.title = quiz.title
                task.update_status(QuizGenerationStatus.COMPLETED)
                await task_repo.save(task)
        except SQLAlchemyError as e:
            raise QuizStorageError(context={"task_id": str(task_id)}) from e

    async def _mark_failed(self, uow: UnitOfWork, task_id: UUID, message: str) -> None:
        try:
            async with uow.transaction():
                task_repo = QuizGenerationTaskRepository(uow)
                task = await task_repo.find_by_id(task_id)
                if task is None:
                    return
                task.mark_failed(message)
                await task_repo.save(task)
        except Exception:
            logger.exception("Could not mark task %s as FAILED", task_id)

    async def get_task(
        self, uow: UnitOfWork, user_id: UUID, task_id: UUID
    ) -> TaskDetailResponse:
        try:
            task = await load_owned_task(uow, user_id, task_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching task %s: %s", task_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the quiz generation task. Please try again.",
                context={"task_id": str(task_id)},
            ) from e
        return TaskDetailResponse.model_validate(task)

    async def list_tasks(
        self,
        uow: UnitOfWork,
        user_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> PaginatedTasksResponse:
        """
        One page of the user's tasks, newest first.

        Pagination Strategy (page/limit):
            The UI shows numbered pages, so offset pagination with a total
            count is used; idx_tasks_user_created keeps it cheap per user.
        """
        try:
            if await UserRepository(uow).find_by_id(user_id) is None:
                raise UserNotFoundError(str(user_id))
            tasks, total = await QuizGenerationTaskRepository(uow).find_by_user_id(
                user_id, page=page, limit=limit
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing tasks for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not list quiz generation tasks. Please try again.",
                context={"user_id": str(user_id)},
            ) from e

        return PaginatedTasksResponse(
            data=[TaskResponse.model_validate(t) for t in tasks],
            meta=PaginationMeta.build(page=page, limit=limit, total_items=total),
        )

    async def list_ongoing_tasks(self, uow: UnitOfWork, user_id: UUID) -> List[TaskResponse]:
        """The user's tasks still PENDING or IN_PROGRESS, newest first (for polling)."""
        try:
            if await UserRepository(uow).find_by_id(user_id) is None:
                raise UserNotFoundError(str(user_id))
            tasks = await QuizGenerationTaskRepository(uow).find_by_user_id_and_statuses(
                user_id,
                [QuizGenerationStatus.PENDING, QuizGenerationStatus.IN_PROGRESS],
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing ongoing tasks for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not list quiz generation tasks. Please try again.",
                context={"user_id": str(user_id)},
            ) from e

        return [TaskResponse.model_validate(t) for t in tasks]

    async def delete_task(self, uow: UnitOfWork, user_id: UUID, task_id: UUID) -> None:
        """
        Soft-delete a task with its questions and answers, children first.

        All three steps share one transaction: if any fails, nothing is deleted.
        """
        try:
            async with uow.transaction():
                task = await load_owned_task(uow, user_id, task_id)
                question_ids = [q.id for q in task.questions]

                await AnswerRepository(uow).soft_delete_by_question_ids(question_ids)
                await QuestionRepository(uow).soft_delete_by_task_id(task_id)
                await QuizGenerationTaskRepository(uow).soft_delete(task_id)
        except SQLAlchemyError as e:
            logger.error("Database error deleting task %s: %s", task_id, str(e))
            raise DatabaseError(
                message="Could not delete the quiz generation task. Please try again.",
                context={"task_id": str(task_id)},
            ) from e

        logger.info("Task %s soft-deleted with %d questions", task_id, len(question_ids))


# ── Singleton Instance ────────────────────────────────────────────────────
quiz_generation_task_service = QuizGenerationTaskService()
