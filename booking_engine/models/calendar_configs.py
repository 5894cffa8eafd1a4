"""Calendar configuration table model (read-only to the engine)."""

import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Integer,
    Table,
    Text,
    Time,
    Uuid,
)

from booking_engine.models.base import UTCDateTime, metadata, utcnow

calendar_configs = Table(
    "calendar_configs",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    # NULL provider_id marks the global default row
    Column("provider_id", Uuid, nullable=True, unique=True),
    Column("slot_interval_minutes", Integer, nullable=False, default=60),
    Column("buffer_minutes", Integer, nullable=False, default=0),
    Column("work_start", Time, nullable=False),
    Column("work_end", Time, nullable=False),
    # ISO weekday numbers, 1 = Monday ... 7 = Sunday
    Column("working_days", JSON, nullable=False),
    Column("timezone", Text, nullable=True),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    CheckConstraint("slot_interval_minutes > 0", name="calendar_configs_interval_check"),
    CheckConstraint("buffer_minutes >= 0", name="calendar_configs_buffer_check"),
    CheckConstraint("work_start < work_end", name="calendar_configs_window_check"),
)
