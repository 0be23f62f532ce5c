"""
Eclairum Backend — Question Repository
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from app.models.quiz import Question, QuizGenerationTask
from app.unit_of_work import UnitOfWork


class QuestionRepository:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def find_by_id(self, question_id: UUID) -> Optional[Question]:
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(Question)
            .where(Question.id == question_id, Question.deleted_at.is_(None))
            .options(selectinload(Question.answers))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_task_id(self, task_id: UUID) -> List[Question]:
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(Question)
            .where(
                Question.quiz_generation_task_id == task_id,
                Question.deleted_at.is_(None),
            )
            .options(selectinload(Question.answers))
            .order_by(Question.position, Question.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_by_user_id(self, user_id: UUID) -> List[Question]:
        """Live questions, with answers, across every live task the user owns."""
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(Question)
            .join(
                QuizGenerationTask,
                QuizGenerationTask.id == Question.quiz_generation_task_id,
            )
            .where(
                QuizGenerationTask.user_id == user_id,
                QuizGenerationTask.deleted_at.is_(None),
                Question.deleted_at.is_(None),
            )
            .options(selectinload(Question.answers))
            .order_by(Question.quiz_generation_task_id, Question.position, Question.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def save(self, question: Question) -> Question:
        session = self.uow.get_current_handle()
        session.add(question)
        await session.flush()
        return question

    async def save_many(self, questions: List[Question]) -> List[Question]:
        session = self.uow.get_current_handle()
        session.add_all(questions)
        await session.flush()
        return questions

    async def soft_delete_by_task_id(self, task_id: UUID) -> List[UUID]:
        """Soft-delete every live question of a task; returns their IDs."""
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(Question.id).where(
                Question.quiz_generation_task_id == task_id,
                Question.deleted_at.is_(None),
            )
        )
        question_ids = list(result.scalars().all())
        if not question_ids:
            return []

        now = datetime.now(timezone.utc)
        await session.execute(
            update(Question)
            .where(Question.id.in_(question_ids))
            .values(deleted_at=now, updated_at=now)
        )
        return question_ids
