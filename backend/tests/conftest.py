"""
Eclairum Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── recording_data_source: in-memory DataSource that logs begin/commit/rollback/close
    ├── mock_uow:              UnitOfWork over a RecordingDataSource with AsyncMock sessions
    ├── session_factory:       async_sessionmaker over a fresh aiosqlite file (tables created)
    ├── test_client:           HTTPX AsyncClient wired to the app, backed by session_factory
    └── sample_quiz:           a valid GeneratedQuiz as Gemini would return it
"""

import os
import tempfile

# Settings are read at import time, so the environment is prepared before
# anything from `app` is imported
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='eclairum_test_')}/health.db"
)
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from functools import partial  # noqa: E402
from typing import List, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from app.database import Base, get_unit_of_work, unit_of_work_scope  # noqa: E402
from app.models import quiz as _quiz_models  # noqa: E402,F401
from app.models import user as _user_models  # noqa: E402,F401
from app.models import user_answer as _user_answer_models  # noqa: E402,F401
from app.schemas.quiz import GeneratedAnswer, GeneratedQuestion, GeneratedQuiz  # noqa: E402
from app.unit_of_work import DataSource, TransactionSession, UnitOfWork  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Data Source
# ══════════════════════════════════════════════════════════════════════════

class FakeHandle:
    """Stands in for an AsyncSession; identity is all the UnitOfWork cares about."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"<FakeHandle {self.name}>"


class RecordingTransactionSession(TransactionSession):
    def __init__(self, source: "RecordingDataSource", handle):
        self._source = source
        self._handle = handle

    @property
    def handle(self):
        return self._handle

    async def commit(self) -> None:
        self._source.calls.append("commit")
        if self._source.commit_error is not None:
            raise self._source.commit_error

    async def rollback(self) -> None:
        self._source.calls.append("rollback")
        if self._source.rollback_error is not None:
            raise self._source.rollback_error

    async def close(self) -> None:
        self._source.calls.append("close")


class RecordingDataSource(DataSource):
    """
    Records every call in `calls`, in order.

    Set begin_error / commit_error / rollback_error to make that step fail.
    `handle_factory` builds each transaction's handle (FakeHandle by default).
    """

    def __init__(self, default_handle=None, handle_factory=None):
        self._default = default_handle if default_handle is not None else FakeHandle("default")
        self._handle_factory = handle_factory or (lambda n: FakeHandle(f"tx-{n}"))
        self.calls: List[str] = []
        self.begin_error: Optional[BaseException] = None
        self.commit_error: Optional[BaseException] = None
        self.rollback_error: Optional[BaseException] = None
        self.transaction_handles: list = []

    @property
    def default_handle(self):
        return self._default

    async def begin(self) -> RecordingTransactionSession:
        self.calls.append("begin")
        if self.begin_error is not None:
            raise self.begin_error
        handle = self._handle_factory(len(self.transaction_handles) + 1)
        self.transaction_handles.append(handle)
        return RecordingTransactionSession(self, handle)


def make_mock_session() -> AsyncMock:
    """AsyncSession look-alike; configure execute()/scalar() per test."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock(return_value=MagicMock())
    session.scalar = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    return session


@pytest.fixture
def recording_data_source():
    return RecordingDataSource()


@pytest.fixture
def mock_uow():
    """
    UnitOfWork whose default and transactional handles are AsyncMock sessions.

    The default session is `mock_uow.default_session`; sessions handed to
    transactions are appended to `mock_uow.data_source.transaction_handles`.
    """
    data_source = RecordingDataSource(
        default_handle=make_mock_session(),
        handle_factory=lambda n: make_mock_session(),
    )
    uow = UnitOfWork(data_source)
    uow.data_source = data_source
    uow.default_session = data_source.default_handle
    return uow


# ══════════════════════════════════════════════════════════════════════════
# Real Database (aiosqlite temp file)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """
    A fresh SQLite database file per test with all tables created.

    A file (not :memory:) so every session opens its own connection, as
    separate PostgreSQL connections would.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'eclairum.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def sample_quiz() -> GeneratedQuiz:
    return GeneratedQuiz(
        title="Photosynthesis Basics",
        questions=[
            GeneratedQuestion(
                question="Which pigment absorbs light in plants?",
                answers=[
                    GeneratedAnswer(text="Chlorophyll", is_correct=True),
                    GeneratedAnswer(text="Keratin", is_correct=False),
                    GeneratedAnswer(text="Melanin", is_correct=False),
                    GeneratedAnswer(text="Hemoglobin", is_correct=False),
                ],
            ),
            GeneratedQuestion(
                question="What gas do plants release?",
                answers=[
                    GeneratedAnswer(text="Oxygen", is_correct=True),
                    GeneratedAnswer(text="Nitrogen", is_correct=False),
                    GeneratedAnswer(text="Helium", is_correct=False),
                    GeneratedAnswer(text="Argon", is_correct=False),
                ],
            ),
        ],
    )


@pytest_asyncio.fixture
async def test_client(session_factory, sample_quiz):
    """
    HTTPX AsyncClient talking to the FastAPI app over ASGITransport.

    Requests and background generation both use the per-test SQLite
    database; Gemini is replaced by an AsyncMock returning `sample_quiz`
    (exposed as `client.quiz_generator`).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    async def override_get_unit_of_work():
        async with unit_of_work_scope(session_factory) as uow:
            yield uow

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work

    with patch(
        "app.services.quiz_generation_task_service.unit_of_work_scope",
        partial(unit_of_work_scope, session_factory),
    ), patch("app.services.quiz_generation_task_service.quiz_generator") as mock_generator:
        mock_generator.generate_quiz = AsyncMock(return_value=sample_quiz)

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            client.quiz_generator = mock_generator
            yield client

    app.dependency_overrides.clear()
