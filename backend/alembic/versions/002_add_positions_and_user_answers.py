"""Add question/answer positions and the user_answers table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18 12:00:00.000000+00:00

What:  questions.position / answers.position give a stable display order
       (batches inserted together share created_at). user_answers records
       every answer a user submits while practising.
How:   batch_alter_table so the column additions also run on SQLite.

Rollback: downgrade() drops user_answers (destructive) and both columns.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    for table in ("questions", "answers"):
        with op.batch_alter_table(table) as batch:
            batch.add_column(
                sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0"))
            )

    op.create_table(
        "user_answers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("question_id", sa.Uuid(), nullable=False),
        sa.Column("answer_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"]),
        sa.ForeignKeyConstraint(["answer_id"], ["answers.id"]),
    )
    op.create_index(
        "idx_user_answers_user_question",
        "user_answers",
        ["user_id", "question_id"],
    )


def downgrade() -> None:
    op.drop_index("idx_user_answers_user_question", table_name="user_answers")
    op.drop_table("user_answers")
    for table in ("answers", "questions"):
        with op.batch_alter_table(table) as batch:
            batch.drop_column("position")
