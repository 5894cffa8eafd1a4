"""Booking orchestrator: slot proposal, booking commit and appointment lifecycle."""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.config import settings
from booking_engine.core.exceptions import (
    AppException,
    ConflictException,
    PastTimeException,
    StorageException,
    ValidationException,
)
from booking_engine.core.locks import ProviderLockManager
from booking_engine.models.base import utcnow
from booking_engine.scheduling.conflicts import BookedInterval, BookingConflict, find_conflict
from booking_engine.scheduling.lifecycle import ensure_appointment_transition
from booking_engine.scheduling.slots import day_bounds, generate_candidate_slots
from booking_engine.schemas.appointments import (
    AppointmentResponse,
    AppointmentStatus,
    BookingCreate,
    BookingSource,
)
from booking_engine.schemas.calendar import CalendarConfig, TimeSlot
from booking_engine.schemas.notifications import NotificationEventType, NotificationRequest
from booking_engine.services.calendar_config_service import (
    CalendarConfigProvider,
    resolve_calendar_config,
)
from booking_engine.services.ledger import BookingLedger
from booking_engine.services.notification_service import NotificationService
from booking_engine.services.telehealth_service import TelehealthService

logger = structlog.get_logger(__name__)


class BookingService:
    """Service for proposing slots and committing bookings.

    Every commit for a provider runs its re-check, insert and commit while
    holding that provider's lock and its database claim row, so two
    overlapping commits can never both succeed, even from different processes.
    """

    def __init__(
        self,
        db: AsyncSession,
        config_source: CalendarConfigProvider,
        locks: ProviderLockManager,
        clock: Callable[[], datetime] = utcnow,
        default_duration_minutes: int | None = None,
        default_timezone: str | None = None,
    ):
        """Initialize service with database session and collaborators."""
        self.db = db
        self.config_source = config_source
        self.locks = locks
        self.clock = clock
        self.default_duration_minutes = (
            default_duration_minutes or settings.default_appointment_duration_minutes
        )
        self.default_timezone = default_timezone or settings.default_timezone
        self.ledger = BookingLedger(db)
        self.notifications = NotificationService(db)
        self.telehealth = TelehealthService(db, self.notifications, clock)

    async def get_calendar_config(self, provider_id: UUID) -> CalendarConfig:
        """Effective calendar configuration for a provider."""
        return await resolve_calendar_config(
            self.config_source, provider_id, self.default_timezone
        )

    async def _booked_intervals(
        self,
        provider_id: UUID,
        window_start: datetime,
        window_end: datetime,
    ) -> list[BookedInterval]:
        rows = await self.ledger.list_active(provider_id, window_start, window_end)
        return [BookedInterval.from_row(row) for row in rows]

    async def propose_slots(
        self,
        provider_id: UUID,
        target_date: date,
        duration_minutes: int | None = None,
    ) -> list[TimeSlot]:
        """
        List the free slots for a provider on a day.

        The result is advisory: nothing is reserved and every slot is
        re-validated when booked.

        Args:
            provider_id: provider to schedule with
            target_date: day in the provider's timezone
            duration_minutes: length of the appointment to fit, defaults to
                ``default_appointment_duration_minutes``

        Returns:
            Free slots in ascending order

        Raises:
            ValidationException: for a non-positive duration
        """
        duration = self.default_duration_minutes if duration_minutes is None else duration_minutes
        if duration <= 0:
            raise ValidationException("duration_minutes must be greater than 0")

        length = timedelta(minutes=duration)
        try:
            config = await self.get_calendar_config(provider_id)
            candidates = generate_candidate_slots(target_date, config, self.clock())
            if not candidates:
                return []

            # Bookings up to two buffers away can still collide once both sides are expanded
            reach = timedelta(minutes=2 * config.buffer_minutes)
            day_start, day_end = day_bounds(target_date, config)
            window_start = min(day_start, candidates[0]) - reach
            window_end = max(day_end, candidates[-1] + length) + reach
            booked = await self._booked_intervals(provider_id, window_start, window_end)
        except SQLAlchemyError as e:
            logger.error("storage_failure", operation="propose_slots", error=str(e))
            raise StorageException() from e

        return [
            TimeSlot(start=candidate, end=candidate + length, label=candidate.strftime("%H:%M"))
            for candidate in candidates
            if find_conflict(candidate, duration, config.buffer_minutes, booked) is None
        ]

    async def commit_booking(
        self,
        data: BookingCreate,
        source: BookingSource = BookingSource.SCHEDULING,
    ) -> AppointmentResponse | BookingConflict:
        """
        Book an appointment if its interval is still free.

        Args:
            data: booking request
            source: caller surface recorded on the appointment

        Returns:
            The created appointment, or a BookingConflict carrying the
            colliding booking's time window

        Raises:
            PastTimeException: start is not strictly in the future
            StorageException: the write failed, nothing was persisted
        """
        now = self.clock()
        start = data.start_at.astimezone(UTC)
        if start <= now:
            logger.info(
                "booking_rejected_past_time",
                provider_id=str(data.provider_id),
                start_at=start.isoformat(),
            )
            raise PastTimeException(start, now)

        end = start + timedelta(minutes=data.duration_minutes)

        try:
            config = await self.get_calendar_config(data.provider_id)
            reach = timedelta(minutes=2 * config.buffer_minutes)
            async with self.locks.hold(data.provider_id):
                # Serializes commits across processes and outlives an expired Redis lease
                await self.ledger.claim_provider(data.provider_id, now)
                booked = await self._booked_intervals(data.provider_id, start - reach, end + reach)
                conflict = find_conflict(
                    start, data.duration_minutes, config.buffer_minutes, booked
                )
                if conflict is not None:
                    await self.db.rollback()
                    logger.info(
                        "booking_conflict",
                        provider_id=str(data.provider_id),
                        conflict_start=conflict.start.isoformat(),
                        conflict_end=conflict.end.isoformat(),
                    )
                    return BookingConflict(start=conflict.start, end=conflict.end)

                row = await self.ledger.insert(
                    {
                        "provider_id": data.provider_id,
                        "subject_id": data.subject_id,
                        "start_at": start,
                        "ends_at": end,
                        "duration_minutes": data.duration_minutes,
                        "status": AppointmentStatus.SCHEDULED.value,
                        "title": data.title,
                        "notes": data.notes,
                        "source": source.value,
                        "created_at": now,
                        "updated_at": now,
                    }
                )

                payload = {
                    "start_at": start.isoformat(),
                    "ends_at": end.isoformat(),
                    "subject_id": str(data.subject_id),
                    "title": data.title,
                }
                if data.telehealth_platform is not None:
                    session = await self.telehealth.allocate(row, data.telehealth_platform, now)
                    payload["telehealth_session_id"] = str(session["id"])
                    payload["meeting_url"] = session["meeting_url"]

                await self.notifications.emit(
                    NotificationRequest(
                        event_type=NotificationEventType.APPOINTMENT_CREATED,
                        recipient_id=data.provider_id,
                        appointment_id=row["id"],
                        payload=payload,
                    )
                )
                await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "storage_failure",
                operation="commit_booking",
                provider_id=str(data.provider_id),
                error=str(e),
            )
            raise StorageException() from e
        except AppException:
            await self.db.rollback()
            raise

        logger.info(
            "booking_committed",
            appointment_id=str(row["id"]),
            provider_id=str(data.provider_id),
            start_at=start.isoformat(),
            duration_minutes=data.duration_minutes,
            source=source.value,
        )
        return AppointmentResponse.model_validate(dict(row))

    async def get_appointment(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        row = await self.ledger.get(appointment_id)
        return AppointmentResponse.model_validate(dict(row))

    async def transition_appointment(
        self,
        appointment_id: UUID,
        target_status: AppointmentStatus,
    ) -> AppointmentResponse:
        """
        Move an appointment to a new status.

        Cancelling frees the interval for new bookings immediately.

        Args:
            appointment_id: Appointment ID
            target_status: requested status

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the status change is not allowed
            ConflictException: If the appointment changed concurrently
        """
        now = self.clock()
        try:
            row = await self.ledger.get(appointment_id)
            current = AppointmentStatus(row["status"])
            target = ensure_appointment_transition(current, target_status)

            updated = await self.ledger.update_status(
                appointment_id, target, now, expected_status=current
            )
            if updated is None:
                raise ConflictException("Appointment was modified concurrently, retry")

            await self.notifications.emit(
                NotificationRequest(
                    event_type=NotificationEventType.APPOINTMENT_STATUS_CHANGED,
                    recipient_id=updated["subject_id"],
                    appointment_id=appointment_id,
                    payload={
                        "previous_status": current.value,
                        "status": target.value,
                        "start_at": updated["start_at"].isoformat(),
                    },
                )
            )
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "storage_failure",
                operation="transition_appointment",
                appointment_id=str(appointment_id),
                error=str(e),
            )
            raise StorageException() from e

        logger.info(
            "appointment_transitioned",
            appointment_id=str(appointment_id),
            previous_status=current.value,
            status=target.value,
        )
        return AppointmentResponse.model_validate(dict(updated))
