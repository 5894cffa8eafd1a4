"""Notification request schemas."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationEventType(str, Enum):
    """Kinds of notification request the engine emits."""

    APPOINTMENT_CREATED = "appointment_created"
    APPOINTMENT_STATUS_CHANGED = "appointment_status_changed"
    TELEHEALTH_STATUS_CHANGED = "telehealth_status_changed"


class NotificationRequest(BaseModel):
    """Event handed to the notification subsystem."""

    event_type: NotificationEventType
    recipient_id: UUID
    appointment_id: UUID | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class NotificationRequestResponse(NotificationRequest):
    """Schema for a stored notification request."""

    id: UUID
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
