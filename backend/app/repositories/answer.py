"""
Eclairum Backend — Answer Repository
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update

from app.models.quiz import Answer
from app.unit_of_work import UnitOfWork


class AnswerRepository:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def find_by_id(self, answer_id: UUID) -> Optional[Answer]:
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(Answer)
            .where(Answer.id == answer_id, Answer.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def save(self, answer: Answer) -> Answer:
        session = self.uow.get_current_handle()
        session.add(answer)
        await session.flush()
        return answer

    async def save_many(self, answers: List[Answer]) -> List[Answer]:
        session = self.uow.get_current_handle()
        session.add_all(answers)
        await session.flush()
        return answers

    async def soft_delete_by_question_id(self, question_id: UUID) -> None:
        await self.soft_delete_by_question_ids([question_id])

    async def soft_delete_by_question_ids(self, question_ids: List[UUID]) -> None:
        if not question_ids:
            return
        session = self.uow.get_current_handle()
        now = datetime.now(timezone.utc)
        await session.execute(
            update(Answer)
            .where(Answer.question_id.in_(question_ids), Answer.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
        )
