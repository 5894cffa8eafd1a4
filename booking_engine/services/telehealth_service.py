"""Telehealth session service."""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    NotFoundException,
    StorageException,
)
from booking_engine.models.base import utcnow
from booking_engine.models.telehealth_sessions import telehealth_sessions
from booking_engine.scheduling import lifecycle
from booking_engine.schemas.appointments import ACTIVE_STATUSES, AppointmentStatus
from booking_engine.schemas.notifications import NotificationEventType, NotificationRequest
from booking_engine.schemas.telehealth import (
    TelehealthPlatform,
    TelehealthSessionCreate,
    TelehealthSessionResponse,
    TelehealthStatus,
)
from booking_engine.services.ledger import BookingLedger
from booking_engine.services.meeting_links import get_link_generator
from booking_engine.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

# Session row + now -> column updates
Transition = Callable[[Mapping[str, Any], datetime], dict[str, Any]]


class TelehealthService:
    """Service for telehealth sessions attached to appointments."""

    def __init__(
        self,
        db: AsyncSession,
        notifications: NotificationService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize service with database session."""
        self.db = db
        self.ledger = BookingLedger(db)
        self.notifications = notifications or NotificationService(db)
        self.clock = clock

    async def allocate(
        self,
        appointment: Mapping[str, Any],
        platform: TelehealthPlatform,
        now: datetime,
    ) -> RowMapping:
        """
        Insert a session for an appointment without committing.

        Used both on its own and inside the booking transaction so that the
        appointment and its session are written together.

        Args:
            appointment: parent appointment row
            platform: video platform to allocate join identifiers on
            now: creation timestamp

        Returns:
            Inserted session row

        Raises:
            BadRequestException: parent appointment is cancelled or completed
            ConflictException: parent appointment already has a session
        """
        if AppointmentStatus(appointment["status"]) not in ACTIVE_STATUSES:
            raise BadRequestException(
                "Telehealth sessions can only be attached to scheduled or confirmed appointments"
            )

        existing = await self.db.execute(
            select(telehealth_sessions.c.id).where(
                telehealth_sessions.c.appointment_id == appointment["id"]
            )
        )
        if existing.first() is not None:
            raise ConflictException("Appointment already has a telehealth session")

        link = get_link_generator(platform).create_link()
        stmt = (
            insert(telehealth_sessions)
            .values(
                appointment_id=appointment["id"],
                provider_id=appointment["provider_id"],
                subject_id=appointment["subject_id"],
                platform=TelehealthPlatform(platform).value,
                meeting_id=link.meeting_id,
                meeting_url=link.meeting_url,
                passcode=link.passcode,
                host_key=link.host_key,
                status=TelehealthStatus.SCHEDULED.value,
                created_at=now,
                updated_at=now,
            )
            .returning(telehealth_sessions)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one()

        logger.info(
            "telehealth_session_created",
            session_id=str(row["id"]),
            appointment_id=str(appointment["id"]),
            platform=row["platform"],
        )
        return row

    async def create_session(self, data: TelehealthSessionCreate) -> TelehealthSessionResponse:
        """
        Create a session for an existing appointment.

        Raises:
            NotFoundException: If appointment not found
        """
        try:
            appointment = await self.ledger.get(data.appointment_id)
            row = await self.allocate(appointment, data.platform, self.clock())
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("storage_failure", operation="create_telehealth_session", error=str(e))
            raise StorageException() from e

        return TelehealthSessionResponse.model_validate(dict(row))

    async def _get_row(self, session_id: UUID) -> RowMapping:
        stmt = select(telehealth_sessions).where(telehealth_sessions.c.id == session_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Telehealth session not found")

        return row

    async def get_session(self, session_id: UUID) -> TelehealthSessionResponse:
        """
        Get telehealth session by ID.

        Raises:
            NotFoundException: If session not found
        """
        row = await self._get_row(session_id)
        return TelehealthSessionResponse.model_validate(dict(row))

    async def _transition(
        self,
        session_id: UUID,
        apply: Transition,
        event: str,
        require_active_parent: bool = False,
    ) -> TelehealthSessionResponse:
        """Load, validate, conditionally update, notify, commit.

        With ``require_active_parent`` the parent appointment must still be
        scheduled or confirmed; ending, cancelling and reporting issues stay
        possible after the appointment is cancelled.
        """
        now = self.clock()
        try:
            row = await self._get_row(session_id)
            parent = await self.ledger.get(row["appointment_id"])
            if (
                require_active_parent
                and AppointmentStatus(parent["status"]) not in ACTIVE_STATUSES
            ):
                raise ConflictException(
                    f"Appointment is {parent['status']}, the session cannot be started or joined"
                )

            updates = apply(row, now)
            stmt = (
                update(telehealth_sessions)
                .where(
                    and_(
                        telehealth_sessions.c.id == session_id,
                        telehealth_sessions.c.status == row["status"],
                    )
                )
                .values(**updates)
                .returning(telehealth_sessions)
            )
            result = await self.db.execute(stmt)
            updated = result.mappings().first()
            if updated is None:
                raise ConflictException("Telehealth session was modified concurrently, retry")

            await self.notifications.emit(
                NotificationRequest(
                    event_type=NotificationEventType.TELEHEALTH_STATUS_CHANGED,
                    recipient_id=updated["subject_id"],
                    appointment_id=updated["appointment_id"],
                    payload={
                        "session_id": str(session_id),
                        "previous_status": row["status"],
                        "status": updated["status"],
                        "meeting_url": updated["meeting_url"],
                    },
                )
            )
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("storage_failure", operation=event, session_id=str(session_id), error=str(e))
            raise StorageException() from e

        logger.info(
            event,
            session_id=str(session_id),
            previous_status=row["status"],
            status=updated["status"],
        )
        return TelehealthSessionResponse.model_validate(dict(updated))

    async def start(self, session_id: UUID) -> TelehealthSessionResponse:
        """Move a session into ``in_session``."""
        return await self._transition(
            session_id,
            lifecycle.start_session,
            "telehealth_session_started",
            require_active_parent=True,
        )

    async def join(self, session_id: UUID, is_subject: bool) -> TelehealthSessionResponse:
        """Record a participant join and move the session to the waiting room."""
        return await self._transition(
            session_id,
            lambda row, now: lifecycle.join_session(row, is_subject, now),
            "telehealth_session_joined",
            require_active_parent=True,
        )

    async def end(self, session_id: UUID) -> TelehealthSessionResponse:
        """Complete a started session."""
        return await self._transition(session_id, lifecycle.end_session, "telehealth_session_ended")

    async def cancel(self, session_id: UUID) -> TelehealthSessionResponse:
        return await self._transition(
            session_id, lifecycle.cancel_session, "telehealth_session_cancelled"
        )

    async def report_technical_issues(
        self,
        session_id: UUID,
        details: str | None = None,
    ) -> TelehealthSessionResponse:
        return await self._transition(
            session_id,
            lambda row, now: lifecycle.report_technical_issues(row, details, now),
            "telehealth_session_technical_issues",
        )
