"""Slot availability and booking endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from booking_engine.core.exceptions import ConflictException
from booking_engine.dependencies import Bookings
from booking_engine.scheduling.conflicts import BookingConflict
from booking_engine.schemas.appointments import (
    AppointmentResponse,
    BookingCreate,
    BookingSource,
    ConflictResponse,
)
from booking_engine.services.booking_service import BookingService

router = APIRouter()

BOOKING_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"description": "Start time is not in the future"},
    status.HTTP_409_CONFLICT: {"model": ConflictResponse, "description": "Slot taken"},
}


async def list_slot_labels(
    service: BookingService,
    provider_id: UUID,
    target_date: date,
    duration_minutes: int | None,
) -> list[str]:
    """Free slot start times as HH:MM in the provider's timezone."""
    slots = await service.propose_slots(provider_id, target_date, duration_minutes)
    return [slot.label for slot in slots]


async def book(
    service: BookingService,
    data: BookingCreate,
    source: BookingSource,
) -> AppointmentResponse:
    """Commit a booking, turning a conflict result into a 409."""
    result = await service.commit_booking(data, source=source)
    if isinstance(result, BookingConflict):
        raise ConflictException(
            "Requested time is no longer available, fetch available slots and retry",
            conflict_window=result.window,
        )
    return result


@router.get(
    "/available-slots",
    response_model=list[str],
    status_code=status.HTTP_200_OK,
    summary="List available slots",
)
async def get_available_slots(
    service: Bookings,
    provider_id: UUID = Query(...),
    target_date: date = Query(..., alias="date"),
    duration_minutes: int | None = Query(None, gt=0, le=24 * 60),
) -> list[str]:
    """
    List the free start times for a provider on a day.

    Args:
        service: Booking service
        provider_id: Provider ID
        target_date: Day in the provider's timezone (YYYY-MM-DD)
        duration_minutes: Appointment length to fit, defaults to 30 minutes

    Returns:
        Start times as HH:MM, ascending
    """
    return await list_slot_labels(service, provider_id, target_date, duration_minutes)


@router.post(
    "/bookings",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
    responses=BOOKING_RESPONSES,
)
async def create_booking(
    data: BookingCreate,
    service: Bookings,
) -> AppointmentResponse:
    """
    Book an appointment for a provider.

    The slot is re-validated against current bookings, so a slot listed
    earlier may still come back as a 409.

    Args:
        data: Booking request
        service: Booking service

    Returns:
        Created appointment
    """
    return await book(service, data, BookingSource.SCHEDULING)
