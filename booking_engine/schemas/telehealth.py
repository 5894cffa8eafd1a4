"""Telehealth session schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class TelehealthPlatform(str, Enum):
    """Supported video platforms."""

    ZOOM = "zoom"
    TEAMS = "teams"
    GOOGLE_MEET = "google_meet"


class TelehealthStatus(str, Enum):
    """Telehealth session status enumeration."""

    SCHEDULED = "scheduled"
    WAITING_ROOM = "waiting_room"
    IN_SESSION = "in_session"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    TECHNICAL_ISSUES = "technical_issues"


class TelehealthSessionCreate(BaseModel):
    """Schema for allocating a session for an existing appointment."""

    appointment_id: UUID
    platform: TelehealthPlatform = TelehealthPlatform.ZOOM


class TelehealthJoin(BaseModel):
    """Schema for recording a participant join."""

    is_subject: bool = False


class TelehealthIssueReport(BaseModel):
    """Schema for flagging a session as failed."""

    details: str | None = Field(None, max_length=1000)


class TelehealthSessionResponse(BaseModel):
    """Schema for telehealth session response."""

    id: UUID
    appointment_id: UUID
    provider_id: UUID
    subject_id: UUID
    platform: TelehealthPlatform
    status: TelehealthStatus
    meeting_id: str
    meeting_url: str
    passcode: str | None = None
    subject_joined_at: datetime | None = None
    provider_joined_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    technical_issues: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
