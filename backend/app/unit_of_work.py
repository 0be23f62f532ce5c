"""
Eclairum Backend — Request-Scoped Unit of Work
================================================

What:  Hands repositories "the current database handle" and lets a service run
       several repository calls as one atomic transaction.
How:   The UnitOfWork holds exactly one current handle. Outside a transaction it
       is the data source's default session; inside `transaction()` it is the
       session of a freshly opened transaction, swapped back on every exit path.
Who:   Created once per inbound request by `get_unit_of_work` (and once per
       background job). Repositories call `get_current_handle()` at the start of
       every operation so they join an enclosing transaction automatically.
When:  Lives for one request; returns to IDLE after each top-level transaction.

State Machine:
    ┌────────┐  transaction() / run_in_transaction()   ┌────────────────┐
    │  IDLE  │ ──────────────────────────────────────▶ │ IN_TRANSACTION │ ──┐
    │default │ ◀────────────────────────────────────── │  tx handle     │   │ nested call:
    └────────┘      commit or rollback (always)        └────────────────┘ ◀─┘ no new transaction

Error Policy:
    Nothing is wrapped or swallowed. Whatever `begin`, `work`, `commit` or
    `rollback` raises reaches the caller as-is; the UnitOfWork only guarantees
    the handle is restored to the default afterwards.

    - begin() fails     → propagates, state untouched (still IDLE)
    - work fails        → rollback, restore, original exception re-raised
    - commit() fails    → commit error propagates, no rollback, restore still runs
    - rollback() fails  → rollback error propagates (work error is its __context__),
                          restore still runs

Concurrency:
    An instance is never shared between requests, so no locking is needed.
    Inside one instance calls must be sequential or nested, never parallel
    siblings (asyncio.gather over one UnitOfWork is unsupported).
"""

import enum
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

# An AsyncSession in production; anything session-like in tests
AccessHandle = Any


# ══════════════════════════════════════════════════════════════════════════
# Data Source Port
# ══════════════════════════════════════════════════════════════════════════

class TransactionSession(ABC):
    """
    An open, uncommitted transaction that owns its own access handle.

    Contract:
        - `handle` is distinct from the data source's default handle
        - commit()/rollback() end the transaction
        - close() releases the underlying connection; always called last
    """

    @property
    @abstractmethod
    def handle(self) -> AccessHandle:
        ...

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class DataSource(ABC):
    """
    Anything that can hand out a default handle and open transactions.

    Implementations:
        - SQLAlchemyDataSource (app.database): AsyncSession per transaction
    """

    @property
    @abstractmethod
    def default_handle(self) -> AccessHandle:
        """The always-available, non-transactional handle."""
        ...

    @abstractmethod
    async def begin(self) -> TransactionSession:
        """Open a new physical transaction. Raises if the store refuses."""
        ...


# ══════════════════════════════════════════════════════════════════════════
# States
# ══════════════════════════════════════════════════════════════════════════

class UnitOfWorkState(str, enum.Enum):
    IDLE = "idle"
    IN_TRANSACTION = "in_transaction"


@dataclass(frozen=True)
class _Idle:
    handle: AccessHandle

    state = UnitOfWorkState.IDLE


@dataclass(frozen=True)
class _InTransaction:
    session: TransactionSession

    state = UnitOfWorkState.IN_TRANSACTION

    @property
    def handle(self) -> AccessHandle:
        return self.session.handle


_State = Union[_Idle, _InTransaction]


# ══════════════════════════════════════════════════════════════════════════
# Unit of Work
# ══════════════════════════════════════════════════════════════════════════

class UnitOfWork:
    """
    Request-scoped transaction coordinator.

    Usage in a service:
        async def delete_task(self, uow, user_id, task_id):
            async with uow.transaction():
                await QuestionRepository(uow).soft_delete_by_task_id(task_id)
                await QuizGenerationTaskRepository(uow).soft_delete(task_id)

    or, callback style:
        result = await uow.run_in_transaction(lambda handle: do_work(handle))
    """

    def __init__(self, data_source: DataSource):
        self._data_source = data_source
        self._state: _State = _Idle(data_source.default_handle)

    def __repr__(self) -> str:
        return f"<UnitOfWork(state={self._state.state.value})>"

    @property
    def state(self) -> UnitOfWorkState:
        return self._state.state

    @property
    def in_transaction(self) -> bool:
        return isinstance(self._state, _InTransaction)

    def get_current_handle(self) -> AccessHandle:
        """
        Return the handle repositories must use right now.

        The transactional handle while a transaction is active, otherwise the
        default handle. Never cache the result across operations.
        """
        return self._state.handle

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AccessHandle]:
        """
        Run the enclosed block atomically and yield the handle to use.

        Nested use on the same instance yields the already-active handle and
        leaves commit/rollback to the outermost block.
        """
        if isinstance(self._state, _InTransaction):
            yield self._state.handle
            return

        session = await self._data_source.begin()
        self._state = _InTransaction(session)
        logger.debug("Transaction started")

        try:
            try:
                yield session.handle
            except BaseException as exc:
                # BaseException: a cancelled request must not leave the
                # transaction open either
                logger.warning(
                    "Rolling back transaction after %s", type(exc).__name__
                )
                await session.rollback()
                raise
            await session.commit()
            logger.debug("Transaction committed")
        finally:
            self._state = _Idle(self._data_source.default_handle)
            await session.close()

    async def run_in_transaction(
        self, work: Callable[[AccessHandle], Awaitable[T]]
    ) -> T:
        """
        Await `work(handle)` inside a transaction and return its result.

        Commit happens only after `work` has fully completed; rollback only
        after it raised. Exceptions propagate unchanged.
        """
        async with self.transaction() as handle:
            return await work(handle)
