"""Tests for conflict detection."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from booking_engine.core.exceptions import ValidationException
from booking_engine.scheduling.conflicts import (
    BookedInterval,
    BookingConflict,
    find_conflict,
    has_conflict,
    intervals_overlap,
)
from booking_engine.schemas.appointments import AppointmentStatus


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 7, hour, minute, tzinfo=UTC)


EXISTING = [BookedInterval(at(10), at(11))]


def test_overlap_is_half_open() -> None:
    assert intervals_overlap(at(9), at(10, 30), at(10), at(11))
    assert not intervals_overlap(at(9), at(10), at(10), at(11))
    assert not intervals_overlap(at(11), at(12), at(10), at(11))


def test_back_to_back_without_buffer_is_free() -> None:
    assert not has_conflict(at(9), 60, 0, EXISTING)
    assert not has_conflict(at(11), 60, 0, EXISTING)


def test_overlapping_candidate_conflicts() -> None:
    assert has_conflict(at(10, 30), 30, 0, EXISTING)
    assert has_conflict(at(9, 30), 60, 0, EXISTING)


def test_buffer_applies_before_existing_booking() -> None:
    """09:00-09:45 leaves exactly 15 minutes before 10:00, so it fits."""
    assert not has_conflict(at(9), 30, 15, EXISTING)
    assert has_conflict(at(9, 15), 30, 15, EXISTING)


def test_buffer_applies_after_existing_booking() -> None:
    assert has_conflict(at(11), 60, 15, EXISTING)
    assert not has_conflict(at(11, 30), 60, 15, EXISTING)


def test_buffer_is_symmetric() -> None:
    """Whichever booking came first, the gap between them must cover both buffers."""
    earlier = [BookedInterval(at(9), at(10))]
    later = [BookedInterval(at(10, 20), at(11))]

    assert has_conflict(at(10, 20), 40, 15, earlier)
    assert has_conflict(at(9), 60, 15, later)
    assert not has_conflict(at(10, 30), 30, 15, earlier)
    assert not has_conflict(at(9), 60, 15, [BookedInterval(at(10, 30), at(11))])


@pytest.mark.parametrize("status", [AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED])
def test_inactive_bookings_never_conflict(status: AppointmentStatus) -> None:
    existing = [BookedInterval(at(10), at(11), status)]
    assert find_conflict(at(10), 60, 15, existing) is None


def test_confirmed_bookings_conflict() -> None:
    existing = [BookedInterval(at(10), at(11), AppointmentStatus.CONFIRMED)]
    assert has_conflict(at(10), 60, 0, existing)


def test_earliest_colliding_booking_is_reported() -> None:
    existing = [BookedInterval(at(11), at(12)), BookedInterval(at(10), at(11))]
    conflict = find_conflict(at(10, 30), 60, 0, existing)
    assert conflict is not None
    assert (conflict.start, conflict.end) == (at(10), at(11))


def test_candidate_offset_is_normalised() -> None:
    plus_two = timezone(timedelta(hours=2))
    candidate = datetime(2030, 1, 7, 12, 30, tzinfo=plus_two)  # 10:30 UTC
    assert has_conflict(candidate, 30, 0, EXISTING)


def test_zero_duration_is_invalid() -> None:
    with pytest.raises(ValidationException):
        find_conflict(at(9), 0, 0, [])


def test_negative_buffer_is_invalid() -> None:
    with pytest.raises(ValidationException):
        find_conflict(at(9), 30, -1, [])


def test_booking_conflict_window() -> None:
    conflict = BookingConflict(start=at(10), end=at(11))
    assert conflict.window == (at(10), at(11))


def test_booked_interval_from_row() -> None:
    row = {"start_at": at(10), "ends_at": at(11), "status": "confirmed"}
    interval = BookedInterval.from_row(row)
    assert interval.status is AppointmentStatus.CONFIRMED
    assert interval.end == at(11)
