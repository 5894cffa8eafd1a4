"""Database models."""

from booking_engine.models.appointments import appointments
from booking_engine.models.base import metadata
from booking_engine.models.booking_claims import provider_booking_claims
from booking_engine.models.calendar_configs import calendar_configs
from booking_engine.models.notifications import notification_requests
from booking_engine.models.telehealth_sessions import telehealth_sessions

__all__ = [
    "appointments",
    "calendar_configs",
    "metadata",
    "notification_requests",
    "provider_booking_claims",
    "telehealth_sessions",
]
