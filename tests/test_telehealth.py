"""Tests for telehealth sessions."""

from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select

from booking_engine.core.exceptions import (
    BadRequestException,
    ConflictException,
    InvalidTransitionException,
    NotFoundException,
)
from booking_engine.models.notifications import notification_requests
from booking_engine.schemas.appointments import (
    AppointmentResponse,
    AppointmentStatus,
    BookingCreate,
)
from booking_engine.schemas.telehealth import (
    TelehealthPlatform,
    TelehealthSessionCreate,
    TelehealthStatus,
)
from booking_engine.services.booking_service import BookingService
from booking_engine.services.telehealth_service import TelehealthService
from tests.helpers import FIXED_NOW, at, fixed_clock


@pytest_asyncio.fixture
async def appointment(
    booking_service: BookingService,
    provider_id: UUID,
    subject_id: UUID,
) -> AppointmentResponse:
    result = await booking_service.commit_booking(
        BookingCreate(
            provider_id=provider_id,
            subject_id=subject_id,
            start_at=at(9),
            duration_minutes=30,
        )
    )
    assert isinstance(result, AppointmentResponse)
    return result


@pytest.fixture
def telehealth_service(db_session) -> TelehealthService:
    return TelehealthService(db_session, clock=fixed_clock)


@pytest.mark.asyncio
async def test_create_session(telehealth_service, appointment) -> None:
    session = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id, platform=TelehealthPlatform.ZOOM)
    )

    assert session.status == TelehealthStatus.SCHEDULED
    assert session.appointment_id == appointment.id
    assert session.provider_id == appointment.provider_id
    assert session.subject_id == appointment.subject_id
    assert session.meeting_url == f"https://zoom.us/j/{session.meeting_id}"
    assert session.started_at is None


@pytest.mark.asyncio
async def test_one_session_per_appointment(telehealth_service, appointment) -> None:
    data = TelehealthSessionCreate(appointment_id=appointment.id)
    await telehealth_service.create_session(data)

    with pytest.raises(ConflictException):
        await telehealth_service.create_session(data)


@pytest.mark.asyncio
async def test_session_requires_existing_appointment(telehealth_service) -> None:
    with pytest.raises(NotFoundException):
        await telehealth_service.create_session(TelehealthSessionCreate(appointment_id=uuid4()))


@pytest.mark.asyncio
async def test_session_requires_active_appointment(
    telehealth_service, booking_service, appointment
) -> None:
    await booking_service.transition_appointment(appointment.id, AppointmentStatus.CANCELLED)

    with pytest.raises(BadRequestException):
        await telehealth_service.create_session(
            TelehealthSessionCreate(appointment_id=appointment.id)
        )


@pytest.mark.asyncio
async def test_full_session_lifecycle(telehealth_service, appointment) -> None:
    created = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id)
    )

    joined = await telehealth_service.join(created.id, is_subject=True)
    assert joined.status == TelehealthStatus.WAITING_ROOM
    assert joined.subject_joined_at == FIXED_NOW
    assert joined.provider_joined_at is None

    joined = await telehealth_service.join(created.id, is_subject=False)
    assert joined.provider_joined_at == FIXED_NOW

    started = await telehealth_service.start(created.id)
    assert started.status == TelehealthStatus.IN_SESSION
    assert started.started_at == FIXED_NOW

    ended = await telehealth_service.end(created.id)
    assert ended.status == TelehealthStatus.COMPLETED
    assert ended.ended_at == FIXED_NOW

    with pytest.raises(InvalidTransitionException):
        await telehealth_service.start(created.id)


@pytest.mark.asyncio
async def test_end_before_start_fails(telehealth_service, appointment) -> None:
    created = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id)
    )

    with pytest.raises(InvalidTransitionException):
        await telehealth_service.end(created.id)

    current = await telehealth_service.get_session(created.id)
    assert current.status == TelehealthStatus.SCHEDULED
    assert current.ended_at is None


@pytest.mark.asyncio
async def test_technical_issues_is_terminal(telehealth_service, appointment) -> None:
    created = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id)
    )
    failed = await telehealth_service.report_technical_issues(created.id, "video froze")
    assert failed.status == TelehealthStatus.TECHNICAL_ISSUES
    assert failed.technical_issues == "video froze"

    with pytest.raises(InvalidTransitionException):
        await telehealth_service.join(created.id, is_subject=True)


@pytest.mark.asyncio
async def test_cancel_session(telehealth_service, appointment) -> None:
    created = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id)
    )
    cancelled = await telehealth_service.cancel(created.id)
    assert cancelled.status == TelehealthStatus.CANCELLED


@pytest.mark.asyncio
async def test_transitions_notify_subject(
    telehealth_service, db_session, appointment, subject_id
) -> None:
    created = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id)
    )
    await telehealth_service.start(created.id)

    stmt = select(notification_requests).where(
        notification_requests.c.event_type == "telehealth_status_changed"
    )
    rows = (await db_session.execute(stmt)).mappings().all()
    assert len(rows) == 1
    assert rows[0]["recipient_id"] == subject_id
    assert rows[0]["payload"]["previous_status"] == "scheduled"
    assert rows[0]["payload"]["status"] == "in_session"


@pytest.mark.asyncio
async def test_unknown_session(telehealth_service) -> None:
    with pytest.raises(NotFoundException):
        await telehealth_service.get_session(uuid4())
    with pytest.raises(NotFoundException):
        await telehealth_service.start(uuid4())


@pytest.mark.asyncio
async def test_restart_after_rejoin(telehealth_service, appointment) -> None:
    created = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id)
    )
    started = await telehealth_service.start(created.id)

    rejoined = await telehealth_service.join(created.id, is_subject=True)
    assert rejoined.status == TelehealthStatus.WAITING_ROOM

    resumed = await telehealth_service.start(created.id)
    assert resumed.status == TelehealthStatus.IN_SESSION
    assert resumed.started_at == started.started_at


@pytest.mark.asyncio
async def test_cancelled_appointment_blocks_start_and_join(
    telehealth_service, booking_service, appointment
) -> None:
    created = await telehealth_service.create_session(
        TelehealthSessionCreate(appointment_id=appointment.id)
    )
    await booking_service.transition_appointment(appointment.id, AppointmentStatus.CANCELLED)

    with pytest.raises(ConflictException):
        await telehealth_service.start(created.id)
    with pytest.raises(ConflictException):
        await telehealth_service.join(created.id, is_subject=True)

    assert (await telehealth_service.get_session(created.id)).status == TelehealthStatus.SCHEDULED

    cancelled = await telehealth_service.cancel(created.id)
    assert cancelled.status == TelehealthStatus.CANCELLED
