"""
Eclairum Backend — User Answer Repository
===========================================

What:  Stores submitted answers and counts them per question.
Who:   UserAnswerService (writes), QuestionService.select_questions_for_user (reads).

Query plans:
    find_question_answer_frequencies:
        SELECT question_id, COUNT(*) ... WHERE user_id = :id GROUP BY question_id
        → idx_user_answers_user_question
"""

from typing import Dict
from uuid import UUID

from sqlalchemy import func, select

from app.models.user_answer import UserAnswer
from app.unit_of_work import UnitOfWork


class UserAnswerRepository:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def save(self, user_answer: UserAnswer) -> UserAnswer:
        session = self.uow.get_current_handle()
        session.add(user_answer)
        await session.flush()
        return user_answer

    async def find_question_answer_frequencies(self, user_id: UUID) -> Dict[UUID, int]:
        """How many times the user has answered each question they ever answered."""
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(UserAnswer.question_id, func.count())
            .where(UserAnswer.user_id == user_id)
            .group_by(UserAnswer.question_id)
        )
        return {question_id: count for question_id, count in result.all()}
