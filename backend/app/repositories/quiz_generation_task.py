"""
Eclairum Backend — Quiz Generation Task Repository
====================================================

What:  Loads, pages through, saves and soft-deletes quiz generation tasks.
Who:   QuizGenerationTaskService, QuestionService (ownership checks).

Query plans:
    find_by_id:      PK lookup, then two selectin queries (questions, answers)
    find_by_user_id: WHERE user_id = :id AND deleted_at IS NULL
                     ORDER BY created_at DESC LIMIT/OFFSET → idx_tasks_user_created
                     plus one COUNT(*) with the same filter
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.orm import selectinload

from app.models.quiz import Question, QuizGenerationStatus, QuizGenerationTask
from app.unit_of_work import UnitOfWork


class QuizGenerationTaskRepository:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def find_by_id(self, task_id: UUID) -> Optional[QuizGenerationTask]:
        """Live task with its live questions and their live answers loaded."""
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(QuizGenerationTask)
            .where(
                QuizGenerationTask.id == task_id,
                QuizGenerationTask.deleted_at.is_(None),
            )
            .options(
                selectinload(QuizGenerationTask.questions).selectinload(Question.answers)
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_user_id(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[QuizGenerationTask], int]:
        """
        One page of a user's tasks, newest first.

        Returns:
            (tasks on the page, total number of live tasks for the user)
        """
        session = self.uow.get_current_handle()
        filters = (
            QuizGenerationTask.user_id == user_id,
            QuizGenerationTask.deleted_at.is_(None),
        )

        total = await session.scalar(
            select(func.count()).select_from(QuizGenerationTask).where(*filters)
        )

        result = await session.execute(
            select(QuizGenerationTask)
            .where(*filters)
            .order_by(desc(QuizGenerationTask.created_at), desc(QuizGenerationTask.id))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def find_by_user_id_and_statuses(
        self, user_id: UUID, statuses: Sequence[QuizGenerationStatus]
    ) -> List[QuizGenerationTask]:
        """All live tasks of a user in one of `statuses`, newest first."""
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(QuizGenerationTask)
            .where(
                QuizGenerationTask.user_id == user_id,
                QuizGenerationTask.status.in_([s.value for s in statuses]),
                QuizGenerationTask.deleted_at.is_(None),
            )
            .order_by(desc(QuizGenerationTask.created_at), desc(QuizGenerationTask.id))
        )
        return list(result.scalars().all())

    async def save(self, task: QuizGenerationTask) -> QuizGenerationTask:
        session = self.uow.get_current_handle()
        session.add(task)
        await session.flush()
        return task

    async def soft_delete(self, task_id: UUID) -> None:
        session = self.uow.get_current_handle()
        now = datetime.now(timezone.utc)
        await session.execute(
            update(QuizGenerationTask)
            .where(
                QuizGenerationTask.id == task_id,
                QuizGenerationTask.deleted_at.is_(None),
            )
            .values(deleted_at=now, updated_at=now)
        )
