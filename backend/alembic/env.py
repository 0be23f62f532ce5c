"""
Eclairum Alembic Migration Environment
========================================

What:  Runs Alembic against the same async database URL the app uses.
How:   Builds an async engine from settings.database_url and runs the
       migration steps inside connection.run_sync().
Who:   `alembic upgrade head` / `alembic revision --autogenerate` from backend/.

SQLite (local experiments, tests) has no ALTER for most column changes, so
migrations are rendered in batch mode there.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from app.config import settings
from app.database import Base

# Every model must be imported to be registered on Base.metadata
from app.models.user import User  # noqa: F401
from app.models.quiz import Answer, Question, QuizGenerationTask  # noqa: F401
from app.models.user_answer import UserAnswer  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# settings, not alembic.ini, owns the URL
config.set_main_option("sqlalchemy.url", settings.database_url)

_is_sqlite = settings.database_url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=_is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
