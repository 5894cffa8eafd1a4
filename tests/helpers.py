"""Shared test constants and helpers."""

from datetime import UTC, date, datetime, time

# Monday 2030-01-07, 06:00 UTC: the whole working day is still ahead
FIXED_NOW = datetime(2030, 1, 7, 6, 0, tzinfo=UTC)
MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 12)


def fixed_clock() -> datetime:
    return FIXED_NOW


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    """UTC timestamp on the test day."""
    return datetime.combine(day, time(hour, minute), tzinfo=UTC)
