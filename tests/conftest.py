import os
from collections.abc import AsyncGenerator, Callable
from datetime import time
from uuid import UUID, uuid4

# Tests never talk to a real Redis or a shared database
os.environ["REDIS_HOST"] = ""
os.environ["BOOKING_LOCK_BACKEND"] = "local"
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

from booking_engine.core.locks import LocalProviderLocks
from booking_engine.database import create_tables, get_db
from booking_engine.dependencies import get_clock, get_lock_manager
from booking_engine.main import app
from booking_engine.models.calendar_configs import calendar_configs
from booking_engine.schemas.calendar import CalendarConfig
from booking_engine.services.booking_service import BookingService
from booking_engine.services.calendar_config_service import StaticCalendarConfigProvider
from tests.helpers import fixed_clock


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine so several sessions can run concurrently."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'booking_test.db'}",
        poolclass=NullPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def provider_id() -> UUID:
    return uuid4()


@pytest.fixture
def subject_id() -> UUID:
    return uuid4()


@pytest.fixture
def calendar_config(provider_id: UUID) -> CalendarConfig:
    """60-minute slots, 15-minute buffer, 09:00-12:00 on weekdays."""
    return CalendarConfig(
        provider_id=provider_id,
        slot_interval_minutes=60,
        buffer_minutes=15,
        work_start=time(9, 0),
        work_end=time(12, 0),
        working_days=frozenset({1, 2, 3, 4, 5}),
        timezone="UTC",
    )


@pytest.fixture
def config_source(
    provider_id: UUID,
    calendar_config: CalendarConfig,
) -> StaticCalendarConfigProvider:
    return StaticCalendarConfigProvider({provider_id: calendar_config})


@pytest.fixture
def locks() -> LocalProviderLocks:
    return LocalProviderLocks(wait_seconds=5)


@pytest.fixture
def make_service(
    config_source: StaticCalendarConfigProvider,
    locks: LocalProviderLocks,
) -> Callable[[AsyncSession], BookingService]:
    """Build booking services that share one config source and lock manager."""

    def _make(session: AsyncSession) -> BookingService:
        return BookingService(session, config_source, locks, clock=fixed_clock)

    return _make


@pytest.fixture
def booking_service(
    db_session: AsyncSession,
    make_service: Callable[[AsyncSession], BookingService],
) -> BookingService:
    return make_service(db_session)


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by the temporary database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    # asyncio locks belong to one event loop, each test gets its own
    test_locks = LocalProviderLocks(wait_seconds=5)
    app.dependency_overrides[get_lock_manager] = lambda: test_locks

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def stored_calendar_config(
    db_session: AsyncSession,
    provider_id: UUID,
) -> UUID:
    """Persist the standard test calendar for ``provider_id``."""
    await db_session.execute(
        insert(calendar_configs).values(
            provider_id=provider_id,
            slot_interval_minutes=60,
            buffer_minutes=15,
            work_start=time(9, 0),
            work_end=time(12, 0),
            working_days=[1, 2, 3, 4, 5],
            timezone="UTC",
        )
    )
    await db_session.commit()
    return provider_id
