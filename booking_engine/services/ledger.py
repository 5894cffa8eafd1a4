"""Booking ledger: the authoritative appointment store for conflict checks."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.exceptions import NotFoundException
from booking_engine.models.appointments import appointments
from booking_engine.models.booking_claims import provider_booking_claims
from booking_engine.schemas.appointments import ACTIVE_STATUSES, AppointmentStatus

# Dialects with INSERT .. ON CONFLICT DO UPDATE
UPSERT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class BookingLedger:
    """Appointment persistence used by the booking orchestrator.

    Methods never commit; the caller owns the transaction so that an
    appointment, its telehealth session and its notification request are
    written all-or-nothing.
    """

    def __init__(self, db: AsyncSession):
        """Initialize ledger with database session."""
        self.db = db

    async def claim_provider(self, provider_id: UUID, now: datetime) -> None:
        """
        Take the provider's booking claim for the current transaction.

        Upserts the provider's claim row. Until the caller commits or rolls
        back, other transactions claiming the same provider wait here
        (row lock on PostgreSQL, database write lock on SQLite), so the
        re-check that follows always sees every committed booking.
        """
        dialect = self.db.get_bind().dialect.name
        upsert = UPSERT_INSERTS.get(dialect)
        if upsert is None:
            raise NotImplementedError(f"Booking claims are not supported on {dialect}")

        stmt = upsert(provider_booking_claims).values(
            provider_id=provider_id, claim_count=1, claimed_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[provider_booking_claims.c.provider_id],
            set_={
                "claim_count": provider_booking_claims.c.claim_count + 1,
                "claimed_at": now,
            },
        )
        await self.db.execute(stmt)

    async def list_active(
        self,
        provider_id: UUID,
        window_start: datetime,
        window_end: datetime,
    ) -> list[RowMapping]:
        """
        List scheduled/confirmed appointments overlapping a time window.

        Args:
            provider_id: provider whose calendar is checked
            window_start: inclusive lower bound
            window_end: exclusive upper bound

        Returns:
            Appointment rows ordered by start time
        """
        stmt = (
            select(appointments)
            .where(
                and_(
                    appointments.c.provider_id == provider_id,
                    appointments.c.status.in_([s.value for s in ACTIVE_STATUSES]),
                    appointments.c.start_at < window_end,
                    appointments.c.ends_at > window_start,
                )
            )
            .order_by(appointments.c.start_at)
        )
        result = await self.db.execute(stmt)
        return list(result.mappings().all())

    async def get(self, appointment_id: UUID) -> RowMapping:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        stmt = select(appointments).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")

        return row

    async def insert(self, values: dict[str, Any]) -> RowMapping:
        """Insert a new appointment row and return it."""
        stmt = insert(appointments).values(**values).returning(appointments)
        result = await self.db.execute(stmt)
        return result.mappings().one()

    async def update_status(
        self,
        appointment_id: UUID,
        new_status: AppointmentStatus,
        now: datetime,
        expected_status: AppointmentStatus | None = None,
    ) -> RowMapping | None:
        """
        Update appointment status.

        Args:
            appointment_id: Appointment ID
            new_status: status to store
            now: timestamp for updated_at / cancelled_at
            expected_status: only update while the row still has this status

        Returns:
            Updated row, or None when no row matched
        """
        conditions = [appointments.c.id == appointment_id]
        if expected_status is not None:
            conditions.append(appointments.c.status == expected_status.value)

        update_values: dict[str, Any] = {
            "status": new_status.value,
            "updated_at": now,
        }
        if new_status == AppointmentStatus.CANCELLED:
            update_values["cancelled_at"] = now

        stmt = (
            update(appointments)
            .where(and_(*conditions))
            .values(**update_values)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        return result.mappings().first()
