"""
Conflict Detection

Decides whether a proposed interval collides with a provider's active bookings.
Both the candidate and every existing booking are widened by the buffer on each
side before the half-open overlap test, so the buffer holds from either side.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from booking_engine.core.exceptions import ValidationException
from booking_engine.schemas.appointments import ACTIVE_STATUSES, AppointmentStatus


@dataclass(frozen=True)
class BookedInterval:
    """Time span occupied by an existing appointment."""

    start: datetime
    end: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BookedInterval":
        """Build from an appointments table row mapping."""
        return cls(
            start=row["start_at"],
            end=row["ends_at"],
            status=AppointmentStatus(row["status"]),
        )


@dataclass(frozen=True)
class BookingConflict:
    """Returned instead of an appointment when the slot is taken.

    Only the colliding booking's window is exposed, never its identity.
    """

    start: datetime
    end: datetime

    @property
    def window(self) -> tuple[datetime, datetime]:
        return self.start, self.end


def expand(start: datetime, end: datetime, buffer_minutes: int) -> tuple[datetime, datetime]:
    """Widen ``[start, end)`` by ``buffer_minutes`` on both sides."""
    buffer = timedelta(minutes=buffer_minutes)
    return start - buffer, end + buffer


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Half-open interval overlap test."""
    return a_start < b_end and b_start < a_end


def find_conflict(
    start: datetime,
    duration_minutes: int,
    buffer_minutes: int,
    existing: Iterable[BookedInterval],
) -> BookedInterval | None:
    """
    Find the earliest active booking that collides with a candidate interval.

    Args:
        start: candidate start (aware)
        duration_minutes: candidate length, must be positive
        buffer_minutes: idle minutes required around every booking
        existing: bookings for the same provider around that day

    Returns:
        The colliding booking, or None when the candidate is free

    Raises:
        ValidationException: for a non-positive duration or negative buffer
    """
    if duration_minutes <= 0:
        raise ValidationException("duration_minutes must be greater than 0")
    if buffer_minutes < 0:
        raise ValidationException("buffer_minutes must not be negative")

    start = start.astimezone(UTC)
    candidate_start, candidate_end = expand(
        start, start + timedelta(minutes=duration_minutes), buffer_minutes
    )

    for booked in sorted(existing, key=lambda b: b.start):
        # Cancelled and completed bookings free their slot immediately
        if booked.status not in ACTIVE_STATUSES:
            continue
        booked_start, booked_end = expand(booked.start, booked.end, buffer_minutes)
        if intervals_overlap(booked_start, booked_end, candidate_start, candidate_end):
            return booked

    return None


def has_conflict(
    start: datetime,
    duration_minutes: int,
    buffer_minutes: int,
    existing: Iterable[BookedInterval],
) -> bool:
    """Boolean form of :func:`find_conflict`."""
    return find_conflict(start, duration_minutes, buffer_minutes, existing) is not None
