"""Notification request endpoints."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, status

from booking_engine.dependencies import Notifications
from booking_engine.schemas.notifications import NotificationRequestResponse

router = APIRouter(prefix="/notification-requests", tags=["Notifications"])


@router.get(
    "",
    response_model=list[NotificationRequestResponse],
    status_code=status.HTTP_200_OK,
    summary="List notification requests",
)
async def list_notification_requests(
    service: Notifications,
    status_filter: Literal["pending", "dispatched"] | None = Query("pending", alias="status"),
    limit: int = Query(100, ge=1, le=500),
) -> list[NotificationRequestResponse]:
    """
    List queued notification requests for the delivery subsystem, oldest first.

    Args:
        service: Notification service
        status_filter: Filter by status
        limit: Maximum number of requests

    Returns:
        Notification requests
    """
    return await service.list_requests(status=status_filter, limit=limit)


@router.post(
    "/{request_id}/dispatched",
    response_model=NotificationRequestResponse,
    status_code=status.HTTP_200_OK,
    summary="Acknowledge a delivered notification request",
)
async def mark_notification_dispatched(
    request_id: UUID,
    service: Notifications,
) -> NotificationRequestResponse:
    """Mark a request as dispatched so it drops out of the pending list."""
    return await service.mark_dispatched(request_id)
