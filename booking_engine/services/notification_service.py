"""Notification request outbox."""

from uuid import UUID

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.exceptions import NotFoundException, StorageException
from booking_engine.models.notifications import notification_requests
from booking_engine.schemas.notifications import (
    NotificationRequest,
    NotificationRequestResponse,
)

logger = structlog.get_logger(__name__)


class NotificationService:
    """Records notification requests for the external delivery subsystem."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def emit(self, request: NotificationRequest) -> UUID:
        """
        Queue a notification request in the current transaction.

        The row only becomes visible when the caller commits, so a failed
        booking or transition never leaks an event.

        Args:
            request: event to queue

        Returns:
            ID of the stored request
        """
        stmt = (
            insert(notification_requests)
            .values(
                event_type=request.event_type.value,
                recipient_id=request.recipient_id,
                appointment_id=request.appointment_id,
                payload=request.payload,
            )
            .returning(notification_requests.c.id)
        )
        result = await self.db.execute(stmt)
        request_id = result.scalar_one()

        logger.info(
            "notification_request_emitted",
            event_type=request.event_type.value,
            appointment_id=str(request.appointment_id) if request.appointment_id else None,
        )
        return request_id

    async def list_requests(
        self,
        status: str | None = "pending",
        limit: int = 100,
    ) -> list[NotificationRequestResponse]:
        """
        List stored notification requests, oldest first.

        Args:
            status: filter by status, None for all
            limit: maximum number of rows

        Returns:
            Notification requests
        """
        stmt = select(notification_requests)
        if status:
            stmt = stmt.where(notification_requests.c.status == status)
        stmt = stmt.order_by(notification_requests.c.created_at).limit(limit)

        result = await self.db.execute(stmt)
        return [
            NotificationRequestResponse.model_validate(dict(row))
            for row in result.mappings().all()
        ]

    async def mark_dispatched(self, request_id: UUID) -> NotificationRequestResponse:
        """
        Acknowledge delivery of a notification request.

        Acknowledging an already dispatched request returns it unchanged.

        Raises:
            NotFoundException: If the request does not exist
            StorageException: If the update could not be committed
        """
        stmt = (
            update(notification_requests)
            .where(
                and_(
                    notification_requests.c.id == request_id,
                    notification_requests.c.status == "pending",
                )
            )
            .values(status="dispatched")
            .returning(notification_requests)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().first()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "storage_failure",
                operation="mark_dispatched",
                request_id=str(request_id),
                error=str(e),
            )
            raise StorageException() from e

        if row is None:
            existing = await self.db.execute(
                select(notification_requests).where(notification_requests.c.id == request_id)
            )
            row = existing.mappings().first()
            if row is None:
                raise NotFoundException("Notification request not found")
        else:
            logger.info("notification_request_dispatched", request_id=str(request_id))

        return NotificationRequestResponse.model_validate(dict(row))
