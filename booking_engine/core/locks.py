"""Per-provider mutual exclusion for the booking critical section."""

import asyncio
import weakref
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from uuid import UUID

import redis.asyncio as aioredis
import structlog
from redis.exceptions import LockError, RedisError

from booking_engine.core.exceptions import StorageException

logger = structlog.get_logger(__name__)


class ProviderLockManager(ABC):
    """Serializes booking commits per provider."""

    @abstractmethod
    def hold(self, provider_id: UUID) -> AbstractAsyncContextManager[None]:
        """Async context manager held across re-check, insert and commit."""


class LocalProviderLocks(ProviderLockManager):
    """In-process ``asyncio.Lock`` per provider.

    Sufficient for a single worker process; use :class:`RedisProviderLocks`
    when several processes share one database.
    """

    def __init__(self, wait_seconds: float | None = None):
        """Initialize with an optional bound on how long to wait for a lock."""
        self.wait_seconds = wait_seconds
        # Entries disappear once no coroutine references the lock
        self._locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, provider_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(provider_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[provider_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, provider_id: UUID) -> AsyncIterator[None]:
        lock = self._lock_for(provider_id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.wait_seconds)
        except TimeoutError as e:
            logger.warning("booking_lock_timeout", provider_id=str(provider_id))
            raise StorageException("Provider calendar is busy, retry the booking") from e
        try:
            yield
        finally:
            lock.release()


class RedisProviderLocks(ProviderLockManager):
    """Redis lock per provider, shared by every worker using the same Redis."""

    def __init__(
        self,
        redis_client: aioredis.Redis,
        timeout_seconds: float = 10.0,
        wait_seconds: float = 5.0,
    ):
        """Initialize with an async Redis client and lock timings."""
        self.redis = redis_client
        self.timeout_seconds = timeout_seconds
        self.wait_seconds = wait_seconds

    @staticmethod
    def lock_name(provider_id: UUID) -> str:
        """Generate lock key for provider."""
        return f"booking-lock:{provider_id}"

    @asynccontextmanager
    async def hold(self, provider_id: UUID) -> AsyncIterator[None]:
        lock = self.redis.lock(
            self.lock_name(provider_id),
            timeout=self.timeout_seconds,
            blocking_timeout=self.wait_seconds,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error("booking_lock_unavailable", provider_id=str(provider_id), error=str(e))
            raise StorageException("Booking lock service unavailable") from e

        if not acquired:
            logger.warning("booking_lock_timeout", provider_id=str(provider_id))
            raise StorageException("Provider calendar is busy, retry the booking")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # Expired before release: the critical section outlived timeout_seconds
                logger.error(
                    "booking_lock_expired",
                    provider_id=str(provider_id),
                    timeout=self.timeout_seconds,
                    error=str(e),
                )
