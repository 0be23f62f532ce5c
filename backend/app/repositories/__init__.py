# Repositories package init
"""
Eclairum Backend — Repositories Package
=========================================

What:  Persistence operations for each aggregate (users, tasks, questions, answers, submitted answers).
How:   Every repository is built around the request's UnitOfWork and asks it
       for the current handle at the start of EVERY operation. Inside
       `uow.transaction()` that is the transaction's session, so repository
       calls made by a service automatically share one atomic transaction.

Repository Inventory:
    - UserRepository
    - QuizGenerationTaskRepository
    - QuestionRepository
    - AnswerRepository
    - UserAnswerRepository

Rules:
    - Never store the handle on the repository instance
    - Reads filter out soft-deleted rows (deleted_at IS NULL)
    - Writes (save/soft_delete) belong inside a transaction
"""

from app.repositories.answer import AnswerRepository
from app.repositories.question import QuestionRepository
from app.repositories.quiz_generation_task import QuizGenerationTaskRepository
from app.repositories.user import UserRepository
from app.repositories.user_answer import UserAnswerRepository

__all__ = [
    "AnswerRepository",
    "QuestionRepository",
    "QuizGenerationTaskRepository",
    "UserAnswerRepository",
    "UserRepository",
]
