"""
Eclairum Backend — Database Engine, Data Source & Unit of Work Dependency
==========================================================================

What:  Async SQLAlchemy engine, session factory, the SQLAlchemy implementation
       of the UnitOfWork's DataSource port, and the FastAPI dependency that
       builds one UnitOfWork per request.
How:   Creates an async engine with connection pooling. Each request gets a
       SQLAlchemyDataSource holding one default session for reads; every
       transaction the UnitOfWork opens gets its own session.
Who:   Route handlers receive a UnitOfWork via FastAPI's Depends(); background
       jobs open their own with `unit_of_work_scope()`.
When:  Engine is created at module import; data sources are created per-request.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    A request inside a transaction may hold two connections at once (the
    default session's, if it already read, and the transaction's).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.unit_of_work import DataSource, TransactionSession, UnitOfWork

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    echo=settings.db_echo,
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: objects stay readable after their transaction
# commits, so services can build responses from them
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations.
    """
    pass


# ══════════════════════════════════════════════════════════════════════════
# SQLAlchemy Data Source
# ══════════════════════════════════════════════════════════════════════════

class SQLAlchemyTransactionSession(TransactionSession):
    """An AsyncSession with an explicitly begun transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def handle(self) -> AsyncSession:
        return self.session

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def close(self) -> None:
        await self.session.close()


class SQLAlchemyDataSource(DataSource):
    """
    DataSource backed by an `async_sessionmaker`.

    What:    Owns the request's default session and opens a new session per
             transaction.
    How:     begin() starts the session transaction and checks out a
             connection right away, so an unreachable database fails at
             begin() instead of in the middle of the caller's work.

    The default session is meant for reads. Anything written through it
    without a transaction is discarded when close() runs.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory or async_session_factory
        self._default_session: AsyncSession = self._session_factory()

    @property
    def default_handle(self) -> AsyncSession:
        return self._default_session

    async def begin(self) -> SQLAlchemyTransactionSession:
        session = self._session_factory()
        try:
            await session.begin()
            await session.connection()
        except Exception:
            await session.close()
            raise
        return SQLAlchemyTransactionSession(session)

    async def close(self) -> None:
        """Release the default session's connection back to the pool."""
        await self._default_session.close()


# ── Unit of Work Scope ────────────────────────────────────────────────────
@asynccontextmanager
async def unit_of_work_scope(
    session_factory: Optional[async_sessionmaker] = None,
) -> AsyncIterator[UnitOfWork]:
    """
    Build a fresh UnitOfWork and release its default session afterwards.

    Used directly by background jobs, and through `get_unit_of_work` by
    every request.
    """
    data_source = SQLAlchemyDataSource(session_factory)
    try:
        yield UnitOfWork(data_source)
    finally:
        await data_source.close()


async def get_unit_of_work() -> AsyncGenerator[UnitOfWork, None]:
    """
    FastAPI dependency providing one UnitOfWork per request.

    Example usage in a route:
        @router.get("/users/{user_id}")
        async def get_user(user_id: UUID, uow: UnitOfWork = Depends(get_unit_of_work)):
            return await user_service.get_user(uow, user_id)

    Commit/rollback is NOT done here: services decide which operations are
    atomic by opening `uow.transaction()` themselves.
    """
    async with unit_of_work_scope() as uow:
        yield uow


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
