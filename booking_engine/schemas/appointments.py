"""Appointment schemas for request/response validation."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from booking_engine.schemas.telehealth import TelehealthPlatform


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that occupy the provider's calendar
ACTIVE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


class BookingSource(str, Enum):
    """Which caller surface created the booking."""

    SCHEDULING = "scheduling"
    SELF_SERVICE = "self_service"


class BookingCreate(BaseModel):
    """Schema for committing a new booking."""

    provider_id: UUID
    subject_id: UUID
    start_at: datetime
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    title: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=1000)
    telehealth_platform: TelehealthPlatform | None = None

    @field_validator("start_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Treat timestamps without offset as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class AppointmentTransition(BaseModel):
    """Schema for requesting an appointment status change."""

    target_status: AppointmentStatus


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    provider_id: UUID
    subject_id: UUID
    start_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    title: str | None = None
    notes: str | None = None
    source: BookingSource
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class ConflictWindow(BaseModel):
    """Time window of the booking that blocked a commit."""

    start: datetime
    end: datetime


class ConflictResponse(BaseModel):
    """Body of a 409 returned for a booking conflict."""

    error: str = "ConflictException"
    message: str
    conflict_window: ConflictWindow
