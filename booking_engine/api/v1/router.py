"""API v1 router configuration."""

from fastapi import APIRouter

from booking_engine.api.v1.endpoints import (
    appointments,
    bookings,
    health,
    notifications,
    public,
    telehealth,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(bookings.router, tags=["Bookings"])
api_router.include_router(public.router, tags=["Self-service"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(telehealth.router)
api_router.include_router(notifications.router)
