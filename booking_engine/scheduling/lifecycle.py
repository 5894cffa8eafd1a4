"""
Lifecycle State Machines

Valid status transitions for appointments and, independently, for the
telehealth session attached to an appointment. Telehealth operations take the
current session row and return the column updates to persist.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from booking_engine.core.exceptions import InvalidTransitionException
from booking_engine.schemas.appointments import AppointmentStatus
from booking_engine.schemas.telehealth import TelehealthStatus

APPOINTMENT_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELLED,
            # Walk-in completion without explicit confirmation
            AppointmentStatus.COMPLETED,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}


def can_transition_appointment(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Check whether an appointment may move from ``current`` to ``target``."""
    return target in APPOINTMENT_TRANSITIONS[current]


def ensure_appointment_transition(
    current: AppointmentStatus | str,
    target: AppointmentStatus | str,
) -> AppointmentStatus:
    """
    Validate an appointment status change.

    Returns:
        The target status

    Raises:
        InvalidTransitionException: if the rule table forbids the move
    """
    current = AppointmentStatus(current)
    target = AppointmentStatus(target)
    if not can_transition_appointment(current, target):
        raise InvalidTransitionException("appointment", current.value, target.value)
    return target


TELEHEALTH_TERMINAL = frozenset(
    {
        TelehealthStatus.COMPLETED,
        TelehealthStatus.CANCELLED,
        TelehealthStatus.TECHNICAL_ISSUES,
    }
)

_STARTABLE = frozenset({TelehealthStatus.SCHEDULED, TelehealthStatus.WAITING_ROOM})


def _status(session: Mapping[str, Any]) -> TelehealthStatus:
    return TelehealthStatus(session["status"])


def _require_open(session: Mapping[str, Any], target: TelehealthStatus) -> TelehealthStatus:
    current = _status(session)
    if current in TELEHEALTH_TERMINAL:
        raise InvalidTransitionException("telehealth session", current.value, target.value)
    return current


def start_session(session: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """scheduled | waiting_room -> in_session.

    ``started_at`` is set on the first start only; resuming after a re-join
    keeps the original value.
    """
    current = _status(session)
    if current not in _STARTABLE:
        raise InvalidTransitionException(
            "telehealth session", current.value, TelehealthStatus.IN_SESSION.value
        )
    updates: dict[str, Any] = {"status": TelehealthStatus.IN_SESSION.value, "updated_at": now}
    if session.get("started_at") is None:
        updates["started_at"] = now
    return updates


def join_session(session: Mapping[str, Any], is_subject: bool, now: datetime) -> dict[str, Any]:
    """Any open state -> waiting_room; re-joining just refreshes the join time."""
    _require_open(session, TelehealthStatus.WAITING_ROOM)
    joined_field = "subject_joined_at" if is_subject else "provider_joined_at"
    return {
        "status": TelehealthStatus.WAITING_ROOM.value,
        joined_field: now,
        "updated_at": now,
    }


def end_session(session: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """Any open state -> completed; only sessions that actually started can end."""
    current = _require_open(session, TelehealthStatus.COMPLETED)
    if session.get("started_at") is None:
        raise InvalidTransitionException(
            "telehealth session", current.value, TelehealthStatus.COMPLETED.value
        )
    return {
        "status": TelehealthStatus.COMPLETED.value,
        "ended_at": now,
        "updated_at": now,
    }


def cancel_session(session: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """Any open state -> cancelled (terminal)."""
    _require_open(session, TelehealthStatus.CANCELLED)
    return {"status": TelehealthStatus.CANCELLED.value, "updated_at": now}


def report_technical_issues(
    session: Mapping[str, Any],
    details: str | None,
    now: datetime,
) -> dict[str, Any]:
    """Any open state -> technical_issues (terminal)."""
    _require_open(session, TelehealthStatus.TECHNICAL_ISSUES)
    return {
        "status": TelehealthStatus.TECHNICAL_ISSUES.value,
        "technical_issues": details,
        "updated_at": now,
    }
