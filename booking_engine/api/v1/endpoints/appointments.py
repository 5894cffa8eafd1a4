"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from booking_engine.dependencies import Bookings
from booking_engine.schemas.appointments import AppointmentResponse, AppointmentTransition

router = APIRouter()


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    service: Bookings,
) -> AppointmentResponse:
    """
    Get appointment details by ID.

    Args:
        appointment_id: Appointment ID
        service: Booking service

    Returns:
        Appointment details
    """
    return await service.get_appointment(appointment_id)


@router.post(
    "/{appointment_id}/transition",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Change appointment status",
)
async def transition_appointment(
    appointment_id: UUID,
    data: AppointmentTransition,
    service: Bookings,
) -> AppointmentResponse:
    """
    Move an appointment to a new status.

    Args:
        appointment_id: Appointment ID
        data: Target status
        service: Booking service

    Returns:
        Updated appointment
    """
    return await service.transition_appointment(appointment_id, data.target_status)
