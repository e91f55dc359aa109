from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db import get_session
from app.main import app
from app.models import SQLModel
from app.services.cache import ReadCache
from app.services.dashboard import DashboardAggregator
from app.services.leave import LeaveWorkflow
from app.services.notifications import LogNotificationService, set_notification_service
from app.services.store import UnitOfWork

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

ALLOWANCES = {"Annual": 20, "Sick": 10, "Casual": 7}


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingNotificationService:
    """Keeps every message instead of delivering it. Raises when ``fail`` is set."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    async def send(self, recipient: str, subject: str, body: str) -> None:
        if self.fail:
            msg = "SMTP relay unreachable"
            raise ConnectionError(msg)
        self.sent.append((recipient, subject, body))


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def read_cache(clock: FakeClock) -> ReadCache:
    return ReadCache(clock=clock)


@pytest.fixture
def notifier() -> RecordingNotificationService:
    return RecordingNotificationService()


@pytest.fixture
def workflow(
    db_session: AsyncSession,
    read_cache: ReadCache,
    notifier: RecordingNotificationService,
) -> LeaveWorkflow:
    return LeaveWorkflow(UnitOfWork(db_session), read_cache, notifier, DashboardAggregator(ALLOWANCES))


@pytest.fixture
def _wired_app(read_cache: ReadCache, notifier: RecordingNotificationService) -> Iterator[None]:
    """Point the application at the test cache and notifier."""
    original_cache = app.state.read_cache
    app.state.read_cache = read_cache
    set_notification_service(notifier)
    yield
    app.state.read_cache = original_cache
    set_notification_service(LogNotificationService())


@pytest.fixture
async def async_client(db_session: AsyncSession, _wired_app: None) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
