"""Initial migration - booking engine tables.

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the appointment, telehealth, calendar, claim and outbox tables."""
    # Enable pgcrypto extension
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "appointments",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("provider_id", postgresql.UUID(), nullable=False),
        sa.Column("subject_id", postgresql.UUID(), nullable=False),
        sa.Column("start_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("ends_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("status", sa.Text(), server_default=sa.text("'scheduled'"), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("source", sa.Text(), server_default=sa.text("'scheduling'"), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column("cancelled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("duration_minutes > 0", name="appointments_duration_check"),
        sa.CheckConstraint("ends_at > start_at", name="appointments_interval_check"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'cancelled', 'completed')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "source IN ('scheduling', 'self_service')",
            name="appointments_source_check",
        ),
    )
    op.create_index(
        "idx_appointments_provider_start", "appointments", ["provider_id", "start_at"]
    )
    op.create_index(
        "idx_appointments_provider_status", "appointments", ["provider_id", "status"]
    )
    op.create_index("idx_appointments_subject_id", "appointments", ["subject_id"])

    op.create_table(
        "telehealth_sessions",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("appointment_id", postgresql.UUID(), nullable=False),
        sa.Column("provider_id", postgresql.UUID(), nullable=False),
        sa.Column("subject_id", postgresql.UUID(), nullable=False),
        sa.Column("platform", sa.Text(), nullable=False),
        sa.Column("meeting_id", sa.Text(), nullable=False),
        sa.Column("meeting_url", sa.Text(), nullable=False),
        sa.Column("passcode", sa.Text(), nullable=True),
        sa.Column("host_key", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), server_default=sa.text("'scheduled'"), nullable=False),
        sa.Column("subject_joined_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("provider_joined_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("started_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("ended_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("technical_issues", sa.Text(), nullable=True),
        sa.Column("session_notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("appointment_id"),
        sa.CheckConstraint(
            "platform IN ('zoom', 'teams', 'google_meet')",
            name="telehealth_sessions_platform_check",
        ),
        sa.CheckConstraint(
            "status IN ('scheduled', 'waiting_room', 'in_session', 'completed', "
            "'cancelled', 'technical_issues')",
            name="telehealth_sessions_status_check",
        ),
    )
    op.create_index("idx_telehealth_sessions_provider", "telehealth_sessions", ["provider_id"])
    op.create_index("idx_telehealth_sessions_status", "telehealth_sessions", ["status"])

    op.create_table(
        "calendar_configs",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("provider_id", postgresql.UUID(), nullable=True),
        sa.Column(
            "slot_interval_minutes", sa.Integer(), server_default=sa.text("60"), nullable=False
        ),
        sa.Column("buffer_minutes", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("work_start", sa.Time(), nullable=False),
        sa.Column("work_end", sa.Time(), nullable=False),
        sa.Column("working_days", sa.JSON(), nullable=False),
        sa.Column("timezone", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider_id"),
        sa.CheckConstraint("slot_interval_minutes > 0", name="calendar_configs_interval_check"),
        sa.CheckConstraint("buffer_minutes >= 0", name="calendar_configs_buffer_check"),
        sa.CheckConstraint("work_start < work_end", name="calendar_configs_window_check"),
    )
    # At most one global (provider_id IS NULL) row
    op.create_index(
        "idx_calendar_configs_single_global",
        "calendar_configs",
        [sa.text("(provider_id IS NULL)")],
        unique=True,
        postgresql_where=sa.text("provider_id IS NULL"),
    )

    # Per-provider claim rows serializing booking commits across workers
    op.create_table(
        "provider_booking_claims",
        sa.Column("provider_id", postgresql.UUID(), nullable=False),
        sa.Column("claim_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "claimed_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("provider_id"),
    )

    op.create_table(
        "notification_requests",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("recipient_id", postgresql.UUID(), nullable=False),
        sa.Column("appointment_id", postgresql.UUID(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "event_type IN ('appointment_created', 'appointment_status_changed', "
            "'telehealth_status_changed')",
            name="notification_requests_type_check",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'dispatched')",
            name="notification_requests_status_check",
        ),
    )
    op.create_index("idx_notification_requests_status", "notification_requests", ["status"])
    op.create_index(
        "idx_notification_requests_recipient", "notification_requests", ["recipient_id"]
    )


def downgrade() -> None:
    """Drop all booking engine tables."""
    op.drop_index("idx_notification_requests_recipient", table_name="notification_requests")
    op.drop_index("idx_notification_requests_status", table_name="notification_requests")
    op.drop_table("notification_requests")
    op.drop_table("provider_booking_claims")
    op.drop_index("idx_calendar_configs_single_global", table_name="calendar_configs")
    op.drop_table("calendar_configs")
    op.drop_index("idx_telehealth_sessions_status", table_name="telehealth_sessions")
    op.drop_index("idx_telehealth_sessions_provider", table_name="telehealth_sessions")
    op.drop_table("telehealth_sessions")
    op.drop_index("idx_appointments_subject_id", table_name="appointments")
    op.drop_index("idx_appointments_provider_status", table_name="appointments")
    op.drop_index("idx_appointments_provider_start", table_name="appointments")
    op.drop_table("appointments")
