"""Telehealth sessions table model."""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Table,
    Text,
    Uuid,
)

from booking_engine.models.base import UTCDateTime, metadata, utcnow

telehealth_sessions = Table(
    "telehealth_sessions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    # Denormalized from the appointment for notification routing
    Column("provider_id", Uuid, nullable=False),
    Column("subject_id", Uuid, nullable=False),
    # Join identifiers allocated by the platform link generator
    Column("platform", Text, nullable=False),
    Column("meeting_id", Text, nullable=False),
    Column("meeting_url", Text, nullable=False),
    Column("passcode", Text, nullable=True),
    Column("host_key", Text, nullable=True),
    Column("status", Text, nullable=False, default="scheduled"),
    Column("subject_joined_at", UTCDateTime, nullable=True),
    Column("provider_joined_at", UTCDateTime, nullable=True),
    Column("started_at", UTCDateTime, nullable=True),
    Column("ended_at", UTCDateTime, nullable=True),
    Column("technical_issues", Text, nullable=True),
    Column("session_notes", Text, nullable=True),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    CheckConstraint(
        "platform IN ('zoom', 'teams', 'google_meet')",
        name="telehealth_sessions_platform_check",
    ),
    CheckConstraint(
        "status IN ('scheduled', 'waiting_room', 'in_session', 'completed', "
        "'cancelled', 'technical_issues')",
        name="telehealth_sessions_status_check",
    ),
    Index("idx_telehealth_sessions_provider", "provider_id"),
    Index("idx_telehealth_sessions_status", "status"),
)
