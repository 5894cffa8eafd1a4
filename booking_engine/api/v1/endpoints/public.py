"""Self-service booking endpoints for subjects booking their own appointments."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from booking_engine.api.v1.endpoints.bookings import BOOKING_RESPONSES, book, list_slot_labels
from booking_engine.dependencies import Bookings
from booking_engine.schemas.appointments import AppointmentResponse, BookingCreate, BookingSource

router = APIRouter(prefix="/public")


@router.get(
    "/available-slots",
    response_model=list[str],
    status_code=status.HTTP_200_OK,
    summary="List available slots (self-service)",
)
async def get_public_available_slots(
    service: Bookings,
    provider_id: UUID = Query(...),
    target_date: date = Query(..., alias="date"),
    duration_minutes: int | None = Query(None, gt=0, le=24 * 60),
) -> list[str]:
    """Same contract as ``GET /available-slots``."""
    return await list_slot_labels(service, provider_id, target_date, duration_minutes)


@router.post(
    "/bookings",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment (self-service)",
    responses=BOOKING_RESPONSES,
)
async def create_public_booking(
    data: BookingCreate,
    service: Bookings,
) -> AppointmentResponse:
    """Same contract as ``POST /bookings``; the appointment is marked ``self_service``."""
    return await book(service, data, BookingSource.SELF_SERVICE)
