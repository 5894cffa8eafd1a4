"""Notification request outbox table.

Rows are written in the same transaction as the state change they describe;
the external notification subsystem owns delivery.
"""

import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Table,
    Uuid,
)

from booking_engine.models.base import UTCDateTime, metadata, utcnow

notification_requests = Table(
    "notification_requests",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("event_type", String(50), nullable=False),
    Column("recipient_id", Uuid, nullable=False),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("payload", JSON, nullable=True),
    Column("status", String(20), nullable=False, default="pending"),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    CheckConstraint(
        "event_type IN ('appointment_created', 'appointment_status_changed', "
        "'telehealth_status_changed')",
        name="notification_requests_type_check",
    ),
    CheckConstraint(
        "status IN ('pending', 'dispatched')",
        name="notification_requests_status_check",
    ),
    Index("idx_notification_requests_status", "status"),
    Index("idx_notification_requests_recipient", "recipient_id"),
)
