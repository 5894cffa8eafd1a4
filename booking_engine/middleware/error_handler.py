"""Exception handlers mapping the booking error taxonomy onto HTTP responses."""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_engine.core.exceptions import AppException, StorageException

logger = structlog.get_logger(__name__)

# Seconds a client should wait before retrying after a storage or lock failure
STORAGE_RETRY_AFTER = "1"


def error_body(request: Request, error: str, message: Any, **extra: Any) -> dict[str, Any]:
    """Common error payload: ``error``, ``message``, ``path`` plus extra fields."""
    return {"error": error, "message": message, "path": str(request.url), **extra}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle booking engine exceptions.

    Extra fields such as ``conflict_window`` or ``current_status`` come from
    ``exc.details()``. Storage failures carry a ``Retry-After`` header.
    """
    headers = None
    if isinstance(exc, StorageException):
        headers = {"Retry-After": STORAGE_RETRY_AFTER}
        logger.warning("storage_unavailable_response", path=request.url.path, message=exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.__class__.__name__, exc.message, **exc.details()),
        headers=headers,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle routing-level HTTP errors such as unknown paths."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, "HTTPException", exc.detail),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle request validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            request,
            "ValidationError",
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "InternalServerError", "An unexpected error occurred"),
    )
