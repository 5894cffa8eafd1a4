"""Calendar configuration providers and resolution."""

from collections.abc import Mapping
from typing import Protocol
from uuid import UUID

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.redis_client import CacheManager
from booking_engine.models.calendar_configs import calendar_configs
from booking_engine.schemas.calendar import DEFAULT_CALENDAR_CONFIG, CalendarConfig

logger = structlog.get_logger(__name__)


class CalendarConfigProvider(Protocol):
    """Read-only source of calendar configuration.

    ``provider_id=None`` asks for the global default row.
    """

    async def get_config(self, provider_id: UUID | None) -> CalendarConfig | None: ...


class DatabaseCalendarConfigProvider:
    """Reads configuration rows from the ``calendar_configs`` table."""

    def __init__(self, db: AsyncSession, default_timezone: str = "UTC"):
        """Initialize provider with database session."""
        self.db = db
        self.default_timezone = default_timezone

    async def get_config(self, provider_id: UUID | None) -> CalendarConfig | None:
        if provider_id is None:
            condition = calendar_configs.c.provider_id.is_(None)
        else:
            condition = calendar_configs.c.provider_id == provider_id

        stmt = select(calendar_configs).where(condition).limit(1)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return CalendarConfig(
            provider_id=row["provider_id"],
            slot_interval_minutes=row["slot_interval_minutes"],
            buffer_minutes=row["buffer_minutes"],
            work_start=row["work_start"],
            work_end=row["work_end"],
            working_days=frozenset(row["working_days"]),
            timezone=row["timezone"] or self.default_timezone,
        )


class CachedCalendarConfigProvider:
    """Redis read-through cache in front of another provider."""

    def __init__(self, inner: CalendarConfigProvider, cache: CacheManager, ttl: int = 300):
        """Initialize with the wrapped provider and cache manager."""
        self.inner = inner
        self.cache = cache
        self.ttl = ttl

    @staticmethod
    def _get_cache_key(provider_id: UUID | None) -> str:
        """Generate cache key for a provider's calendar config."""
        return f"calendar_config:{provider_id or 'global'}"

    async def get_config(self, provider_id: UUID | None) -> CalendarConfig | None:
        cache_key = self._get_cache_key(provider_id)

        cached = self.cache.get_json(cache_key)
        if cached is not None:
            try:
                return CalendarConfig.model_validate(cached)
            except ValidationError:
                logger.warning("calendar_config_cache_invalid", key=cache_key)
                self.cache.delete(cache_key)

        config = await self.inner.get_config(provider_id)
        if config is not None:
            self.cache.set_json(cache_key, config.model_dump(mode="json"), ttl=self.ttl)
        return config


class StaticCalendarConfigProvider:
    """Fixed in-memory configurations, keyed by provider id (None = global)."""

    def __init__(self, configs: Mapping[UUID | None, CalendarConfig] | None = None):
        """Initialize with a mapping of configurations."""
        self.configs = dict(configs or {})

    async def get_config(self, provider_id: UUID | None) -> CalendarConfig | None:
        return self.configs.get(provider_id)


async def resolve_calendar_config(
    source: CalendarConfigProvider,
    provider_id: UUID,
    default_timezone: str = "UTC",
) -> CalendarConfig:
    """
    Resolve the effective configuration for a provider.

    Falls back from the provider's own config to the global config, then to the
    explicit built-in default (60-minute slots, no buffer, 09:00-17:00, Mon-Fri).

    Args:
        source: configuration provider
        provider_id: provider being scheduled
        default_timezone: timezone applied to the built-in default

    Returns:
        Effective calendar configuration
    """
    config = await source.get_config(provider_id)
    if config is not None:
        return config

    config = await source.get_config(None)
    if config is not None:
        return config

    logger.info("calendar_config_fallback", provider_id=str(provider_id))
    return DEFAULT_CALENDAR_CONFIG.model_copy(
        update={"provider_id": provider_id, "timezone": default_timezone}
    )
