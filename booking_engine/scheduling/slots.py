"""
Slot Generation

Builds the ordered candidate start times for one provider-day from its
calendar configuration. Pure: no I/O, identical inputs give identical output.
"""

from datetime import UTC, date, datetime, timedelta

from booking_engine.schemas.calendar import CalendarConfig


def day_bounds(target_date: date, config: CalendarConfig) -> tuple[datetime, datetime]:
    """
    Return the UTC instants bounding ``target_date`` in the provider's timezone.

    Args:
        target_date: calendar day as seen by the provider
        config: calendar configuration supplying the timezone

    Returns:
        (start of day, start of next day), both aware UTC datetimes
    """
    tz = config.tz
    start = datetime.combine(target_date, datetime.min.time(), tzinfo=tz)
    end = datetime.combine(target_date + timedelta(days=1), datetime.min.time(), tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def local_date(moment: datetime, config: CalendarConfig) -> date:
    """Calendar day of ``moment`` in the provider's timezone."""
    return moment.astimezone(config.tz).date()


def generate_candidate_slots(
    target_date: date,
    config: CalendarConfig,
    now: datetime,
) -> list[datetime]:
    """
    Generate candidate start times for a day.

    Args:
        target_date: day to generate slots for
        config: provider calendar configuration
        now: current wall-clock time (aware)

    Returns:
        list[datetime]: ascending start times in the provider's timezone,
        ``slot_interval_minutes`` apart, from ``work_start`` up to but excluding
        ``work_end``. Empty when the weekday is not a working day.

    Steps:
        1. Skip non-working weekdays
        2. Step from work_start by slot_interval_minutes while < work_end
        3. Drop candidates at or before now
    """
    if target_date.isoweekday() not in config.working_days:
        return []

    tz = config.tz
    current = datetime.combine(target_date, config.work_start, tzinfo=tz)
    window_end = datetime.combine(target_date, config.work_end, tzinfo=tz)
    step = timedelta(minutes=config.slot_interval_minutes)

    candidates: list[datetime] = []
    while current < window_end:
        # No booking the past
        if current > now:
            candidates.append(current)
        current += step

    return candidates
