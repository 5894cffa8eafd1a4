"""Custom application exceptions."""

from datetime import datetime
from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def details(self) -> dict[str, Any]:
        """Extra fields merged into the JSON error body."""
        return {}


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ValidationException(AppException):
    """Malformed input, always caller-fixable."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class PastTimeException(BadRequestException):
    """Booking requested at or before the current time."""

    def __init__(self, start_at: datetime, now: datetime):
        """Initialize with the rejected start time."""
        self.start_at = start_at
        self.now = now
        super().__init__("Appointments must start in the future")

    def details(self) -> dict[str, Any]:
        return {"start_at": self.start_at.isoformat()}


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(
        self,
        message: str = "Conflict",
        conflict_window: tuple[datetime, datetime] | None = None,
    ):
        """Initialize with 409 status code and the colliding time window, if any."""
        self.conflict_window = conflict_window
        super().__init__(message, status_code=409)

    def details(self) -> dict[str, Any]:
        if self.conflict_window is None:
            return {}
        start, end = self.conflict_window
        return {"conflict_window": {"start": start.isoformat(), "end": end.isoformat()}}


class InvalidTransitionException(AppException):
    """Lifecycle rule violated."""

    def __init__(self, entity: str, current_status: str, target_status: str):
        """Initialize with 409 status code."""
        self.entity = entity
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot move {entity} from '{current_status}' to '{target_status}'",
            status_code=409,
        )

    def details(self) -> dict[str, Any]:
        return {"current_status": self.current_status, "target_status": self.target_status}


class StorageException(AppException):
    """Transient persistence failure; the whole operation is safe to retry."""

    def __init__(self, message: str = "Storage temporarily unavailable"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)
