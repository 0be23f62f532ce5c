"""
Eclairum Backend — User Answer SQLAlchemy Model
=================================================

What:  ORM model for `user_answers`: one row per answer a user submits
       while practising a quiz.
Who:   Written by UserAnswerService.submit_answer; aggregated by
       UserAnswerRepository to steer question selection.

Table Design:
    - Append-only history; answering the same question again adds a row
    - question_id is stored alongside answer_id so per-question counts
      need no join
    - (user_id, question_id) index backs the frequency GROUP BY
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserAnswer(Base):
    __tablename__ = "user_answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id"), nullable=False
    )
    answer_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("answers.id"), nullable=False)

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

    __table_args__ = (
        Index("idx_user_answers_user_question", "user_id", "question_id"),
    )

    def __repr__(self) -> str:
        return f"<UserAnswer(user={self.user_id}, question={self.question_id})>"
