"""FastAPI dependencies."""

from collections.abc import Callable
from datetime import datetime
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.config import settings
from booking_engine.core.locks import LocalProviderLocks, ProviderLockManager, RedisProviderLocks
from booking_engine.core.redis_client import (
    CacheManager,
    get_async_redis_client,
    get_redis_client,
)
from booking_engine.database import get_db
from booking_engine.models.base import utcnow
from booking_engine.services.booking_service import BookingService
from booking_engine.services.calendar_config_service import (
    CachedCalendarConfigProvider,
    CalendarConfigProvider,
    DatabaseCalendarConfigProvider,
)
from booking_engine.services.notification_service import NotificationService
from booking_engine.services.telehealth_service import TelehealthService


@lru_cache
def get_lock_manager() -> ProviderLockManager:
    """
    Get the process-wide booking lock manager.

    Returns:
        Redis-backed locks when ``BOOKING_LOCK_BACKEND=redis``, otherwise
        in-process locks
    """
    if settings.booking_lock_backend == "redis":
        return RedisProviderLocks(
            get_async_redis_client(),
            timeout_seconds=settings.booking_lock_timeout_seconds,
            wait_seconds=settings.booking_lock_wait_seconds,
        )
    return LocalProviderLocks(wait_seconds=settings.booking_lock_wait_seconds)


def get_clock() -> Callable[[], datetime]:
    """Wall clock used for past-time checks and audit timestamps."""
    return utcnow


async def get_calendar_config_source(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CalendarConfigProvider:
    """
    Build the calendar configuration provider for a request.

    Args:
        db: Database session

    Returns:
        Database provider, cached in Redis when Redis is configured
    """
    source: CalendarConfigProvider = DatabaseCalendarConfigProvider(db, settings.default_timezone)
    if settings.redis_enabled:
        source = CachedCalendarConfigProvider(
            source,
            CacheManager(get_redis_client()),
            ttl=settings.calendar_config_cache_ttl,
        )
    return source


async def get_booking_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    config_source: Annotated[CalendarConfigProvider, Depends(get_calendar_config_source)],
    locks: Annotated[ProviderLockManager, Depends(get_lock_manager)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> BookingService:
    return BookingService(db, config_source, locks, clock=clock)


async def get_telehealth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> TelehealthService:
    return TelehealthService(db, clock=clock)


async def get_notification_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> NotificationService:
    return NotificationService(db)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
Bookings = Annotated[BookingService, Depends(get_booking_service)]
TelehealthSessions = Annotated[TelehealthService, Depends(get_telehealth_service)]
Notifications = Annotated[NotificationService, Depends(get_notification_service)]
