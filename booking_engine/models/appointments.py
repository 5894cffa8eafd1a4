"""Appointments table model using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Index,
    Integer,
    Table,
    Text,
    Uuid,
)

from booking_engine.models.base import UTCDateTime, metadata, utcnow

# Appointments table (the booking ledger)
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    # Ownership / references
    Column("provider_id", Uuid, nullable=False),
    Column("subject_id", Uuid, nullable=False),
    # Booked interval; ends_at is start_at + duration_minutes, kept for range queries
    Column("start_at", UTCDateTime, nullable=False),
    Column("ends_at", UTCDateTime, nullable=False),
    Column("duration_minutes", Integer, nullable=False),
    # Status management
    Column("status", Text, nullable=False, default="scheduled"),
    # Opaque metadata
    Column("title", Text, nullable=True),
    Column("notes", Text, nullable=True),
    Column("source", Text, nullable=False, default="scheduling"),
    # Audit fields
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    Column("cancelled_at", UTCDateTime, nullable=True),
    # Constraints
    CheckConstraint("duration_minutes > 0", name="appointments_duration_check"),
    CheckConstraint("ends_at > start_at", name="appointments_interval_check"),
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'cancelled', 'completed')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "source IN ('scheduling', 'self_service')",
        name="appointments_source_check",
    ),
    Index("idx_appointments_provider_start", "provider_id", "start_at"),
    Index("idx_appointments_provider_status", "provider_id", "status"),
    Index("idx_appointments_subject_id", "subject_id"),
)
