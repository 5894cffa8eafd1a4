"""Telehealth session endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from booking_engine.dependencies import TelehealthSessions
from booking_engine.schemas.telehealth import (
    TelehealthIssueReport,
    TelehealthJoin,
    TelehealthSessionCreate,
    TelehealthSessionResponse,
)

router = APIRouter(prefix="/telehealth-sessions", tags=["Telehealth"])


@router.post(
    "",
    response_model=TelehealthSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create telehealth session",
)
async def create_session(
    data: TelehealthSessionCreate,
    service: TelehealthSessions,
) -> TelehealthSessionResponse:
    """
    Allocate a telehealth session for an existing appointment.

    Args:
        data: Appointment ID and video platform
        service: Telehealth service

    Returns:
        Created session with its join identifiers
    """
    return await service.create_session(data)


@router.get(
    "/{session_id}",
    response_model=TelehealthSessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Get telehealth session",
)
async def get_session(
    session_id: UUID,
    service: TelehealthSessions,
) -> TelehealthSessionResponse:
    return await service.get_session(session_id)


@router.post(
    "/{session_id}/start",
    response_model=TelehealthSessionResponse,
    summary="Start session",
)
async def start_session(
    session_id: UUID,
    service: TelehealthSessions,
) -> TelehealthSessionResponse:
    return await service.start(session_id)


@router.post(
    "/{session_id}/join",
    response_model=TelehealthSessionResponse,
    summary="Join session",
)
async def join_session(
    session_id: UUID,
    service: TelehealthSessions,
    data: TelehealthJoin | None = None,
) -> TelehealthSessionResponse:
    """
    Record a participant joining.

    Args:
        session_id: Session ID
        service: Telehealth service
        data: ``is_subject`` marks the served party rather than the provider

    Returns:
        Updated session
    """
    is_subject = data.is_subject if data else False
    return await service.join(session_id, is_subject)


@router.post(
    "/{session_id}/end",
    response_model=TelehealthSessionResponse,
    summary="End session",
)
async def end_session(
    session_id: UUID,
    service: TelehealthSessions,
) -> TelehealthSessionResponse:
    return await service.end(session_id)


@router.post(
    "/{session_id}/cancel",
    response_model=TelehealthSessionResponse,
    summary="Cancel session",
)
async def cancel_session(
    session_id: UUID,
    service: TelehealthSessions,
) -> TelehealthSessionResponse:
    return await service.cancel(session_id)


@router.post(
    "/{session_id}/technical-issues",
    response_model=TelehealthSessionResponse,
    summary="Report technical issues",
)
async def report_technical_issues(
    session_id: UUID,
    service: TelehealthSessions,
    data: TelehealthIssueReport | None = None,
) -> TelehealthSessionResponse:
    return await service.report_technical_issues(session_id, data.details if data else None)
