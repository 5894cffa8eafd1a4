"""Calendar configuration and slot schemas."""

from datetime import datetime, time
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator


class CalendarConfig(BaseModel):
    """Working window and slot rules for one provider (or the global default)."""

    provider_id: UUID | None = None
    slot_interval_minutes: int = Field(..., gt=0)
    buffer_minutes: int = Field(0, ge=0)
    work_start: time
    work_end: time
    # ISO weekday numbers, 1 = Monday ... 7 = Sunday
    working_days: frozenset[int]
    timezone: str = "UTC"

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: frozenset[int]) -> frozenset[int]:
        """Validate weekday numbers."""
        if any(day < 1 or day > 7 for day in v):
            raise ValueError("Working days must be ISO weekday numbers between 1 and 7")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the IANA timezone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "CalendarConfig":
        """Validate the working window is not empty."""
        if self.work_start >= self.work_end:
            raise ValueError("work_start must be before work_end")
        return self

    @property
    def tz(self) -> ZoneInfo:
        """Timezone the working window is expressed in."""
        return ZoneInfo(self.timezone)


# Used when neither the provider nor the global config exists
DEFAULT_CALENDAR_CONFIG = CalendarConfig(
    slot_interval_minutes=60,
    buffer_minutes=0,
    work_start=time(9, 0),
    work_end=time(17, 0),
    working_days=frozenset({1, 2, 3, 4, 5}),
)


class TimeSlot(BaseModel):
    """A bookable candidate interval."""

    start: datetime
    end: datetime
    label: str = Field(..., description="Start time as HH:MM in the provider's timezone")
