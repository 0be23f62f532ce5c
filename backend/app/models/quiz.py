"""
Eclairum Backend — Quiz SQLAlchemy Models
===========================================

What:  ORM models for `quiz_generation_tasks`, `questions` and `answers`.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by the task/question/answer repositories.

Lifecycle of a task:
    1. Created IN_PROGRESS when a user submits text
    2. Background generation → COMPLETED (questions + answers stored, generated_at set)
       or FAILED (error_message populated)
    3. Soft-deleted together with its questions and answers

Relationships (ordered by position, then id):
    `QuizGenerationTask.questions` and `Question.answers` are read-only views
    that skip soft-deleted rows. Children are written by setting their foreign
    key and adding them through their own repository.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizGenerationStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class QuizGenerationTask(Base):
    """
    A request to turn a piece of text into a quiz.

    Query Patterns:
        - List a user's tasks: WHERE user_id = :id AND deleted_at IS NULL
          ORDER BY created_at DESC → idx_tasks_user_created
        - Get one task: primary key lookup + selectin load of questions/answers
    """

    __tablename__ = "quiz_generation_tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )

    # Filled in by the LLM once generation succeeds
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)

    text_content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Source text the quiz is generated from",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=QuizGenerationStatus.PENDING.value,
        comment="PENDING, IN_PROGRESS, COMPLETED, FAILED",
    )

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    generated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    questions: Mapped[List["Question"]] = relationship(
        "Question",
        primaryjoin=(
            "and_(QuizGenerationTask.id == Question.quiz_generation_task_id, "
            "Question.deleted_at.is_(None))"
        ),
        order_by=lambda: [Question.position, Question.id],
        viewonly=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_tasks_user_created", "user_id", created_at.desc()),
    )

    def update_status(self, status: QuizGenerationStatus) -> None:
        """Move to `status`; the first COMPLETED also stamps generated_at."""
        self.status = status.value
        self.updated_at = _utcnow()
        if status is QuizGenerationStatus.COMPLETED and self.generated_at is None:
            self.generated_at = _utcnow()

    def mark_failed(self, error_message: str) -> None:
        self.update_status(QuizGenerationStatus.FAILED)
        self.error_message = error_message

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def soft_delete(self) -> None:
        self.deleted_at = _utcnow()
        self.updated_at = self.deleted_at

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.user_id == user_id

    def __repr__(self) -> str:
        return f"<QuizGenerationTask(id={self.id}, status='{self.status}')>"


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    quiz_generation_task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("quiz_generation_tasks.id"),
        nullable=False,
        index=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Display order within the task
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    answers: Mapped[List["Answer"]] = relationship(
        "Answer",
        primaryjoin="and_(Question.id == Answer.question_id, Answer.deleted_at.is_(None))",
        order_by=lambda: [Answer.position, Answer.id],
        viewonly=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, task={self.quiz_generation_task_id})>"


class Answer(Base):
    __tablename__ = "answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("questions.id"),
        nullable=False,
        index=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    def __repr__(self) -> str:
        return f"<Answer(id={self.id}, correct={self.is_correct})>"
