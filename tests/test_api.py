"""Tests for the HTTP endpoints."""

from datetime import datetime
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from starlette.requests import Request

from booking_engine.core.exceptions import StorageException
from booking_engine.middleware.error_handler import app_exception_handler
from tests.helpers import at

SLOTS_URL = "/api/v1/available-slots"
BOOKINGS_URL = "/api/v1/bookings"


def booking_payload(provider_id: UUID, start: datetime, minutes: int = 30, **extra) -> dict:
    return {
        "provider_id": str(provider_id),
        "subject_id": str(extra.pop("subject_id", uuid4())),
        "start_at": start.isoformat(),
        "duration_minutes": minutes,
        **extra,
    }


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_ping(client: AsyncClient) -> None:
    response = await client.get("/api/v1/ping")
    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_available_slots_uses_stored_config(
    client: AsyncClient, stored_calendar_config: UUID
) -> None:
    response = await client.get(
        SLOTS_URL, params={"provider_id": str(stored_calendar_config), "date": "2030-01-07"}
    )
    assert response.status_code == 200
    assert response.json() == ["09:00", "10:00", "11:00"]


@pytest.mark.asyncio
async def test_available_slots_for_unconfigured_provider(client: AsyncClient) -> None:
    response = await client.get(SLOTS_URL, params={"provider_id": str(uuid4()), "date": "2030-01-07"})
    assert response.status_code == 200
    assert response.json()[0] == "09:00"
    assert len(response.json()) == 8


@pytest.mark.asyncio
async def test_available_slots_bad_date(client: AsyncClient) -> None:
    response = await client.get(SLOTS_URL, params={"provider_id": str(uuid4()), "date": "07/01/2030"})
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_available_slots_zero_duration(client: AsyncClient) -> None:
    response = await client.get(
        SLOTS_URL,
        params={"provider_id": str(uuid4()), "date": "2030-01-07", "duration_minutes": 0},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_booking_flow(client: AsyncClient, stored_calendar_config: UUID) -> None:
    """Existing 10:00-11:00 booking with a 15-minute buffer."""
    provider_id = stored_calendar_config

    response = await client.post(BOOKINGS_URL, json=booking_payload(provider_id, at(10), 60))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "scheduled"
    assert data["source"] == "scheduling"
    assert datetime.fromisoformat(data["ends_at"]) == at(11)

    slots = await client.get(SLOTS_URL, params={"provider_id": str(provider_id), "date": "2030-01-07"})
    assert slots.json() == ["09:00"]

    response = await client.post(BOOKINGS_URL, json=booking_payload(provider_id, at(9)))
    assert response.status_code == 201

    response = await client.post(BOOKINGS_URL, json=booking_payload(provider_id, at(10, 30)))
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "ConflictException"
    assert datetime.fromisoformat(body["conflict_window"]["start"]) == at(10)
    assert datetime.fromisoformat(body["conflict_window"]["end"]) == at(11)
    # Never leaks who holds the slot
    assert "subject_id" not in body
    assert "id" not in body


@pytest.mark.asyncio
async def test_past_booking_rejected(client: AsyncClient) -> None:
    response = await client.post(
        BOOKINGS_URL, json=booking_payload(uuid4(), datetime.fromisoformat("2029-12-31T09:00:00+00:00"))
    )
    assert response.status_code == 400
    assert response.json()["error"] == "PastTimeException"


@pytest.mark.asyncio
async def test_booking_zero_duration_rejected(client: AsyncClient) -> None:
    response = await client.post(BOOKINGS_URL, json=booking_payload(uuid4(), at(9), 0))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_public_booking_is_self_service(
    client: AsyncClient, stored_calendar_config: UUID
) -> None:
    provider_id = stored_calendar_config
    slots = await client.get(
        "/api/v1/public/available-slots",
        params={"provider_id": str(provider_id), "date": "2030-01-07"},
    )
    assert slots.json() == ["09:00", "10:00", "11:00"]

    response = await client.post("/api/v1/public/bookings", json=booking_payload(provider_id, at(11)))
    assert response.status_code == 201
    assert response.json()["source"] == "self_service"

    response = await client.post("/api/v1/public/bookings", json=booking_payload(provider_id, at(11)))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_appointment_transitions(client: AsyncClient, stored_calendar_config: UUID) -> None:
    created = await client.post(
        BOOKINGS_URL, json=booking_payload(stored_calendar_config, at(9))
    )
    appointment_id = created.json()["id"]

    response = await client.get(f"/api/v1/appointments/{appointment_id}")
    assert response.status_code == 200
    assert response.json()["id"] == appointment_id

    response = await client.post(
        f"/api/v1/appointments/{appointment_id}/transition", json={"target_status": "confirmed"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    response = await client.post(
        f"/api/v1/appointments/{appointment_id}/transition", json={"target_status": "completed"}
    )
    assert response.status_code == 200

    response = await client.post(
        f"/api/v1/appointments/{appointment_id}/transition", json={"target_status": "scheduled"}
    )
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "InvalidTransitionException"
    assert body["current_status"] == "completed"


@pytest.mark.asyncio
async def test_unknown_appointment(client: AsyncClient) -> None:
    response = await client.get(f"/api/v1/appointments/{uuid4()}")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundException"


@pytest.mark.asyncio
async def test_telehealth_endpoints(client: AsyncClient, stored_calendar_config: UUID) -> None:
    created = await client.post(BOOKINGS_URL, json=booking_payload(stored_calendar_config, at(9)))
    appointment_id = created.json()["id"]

    response = await client.post(
        "/api/v1/telehealth-sessions",
        json={"appointment_id": appointment_id, "platform": "google_meet"},
    )
    assert response.status_code == 201
    session = response.json()
    assert session["status"] == "scheduled"
    assert session["meeting_url"].startswith("https://meet.google.com/")
    assert "host_key" not in session
    session_url = f"/api/v1/telehealth-sessions/{session['id']}"

    response = await client.post(f"{session_url}/end")
    assert response.status_code == 409

    response = await client.post(f"{session_url}/join", json={"is_subject": True})
    assert response.status_code == 200
    assert response.json()["status"] == "waiting_room"
    assert response.json()["subject_joined_at"] is not None

    response = await client.post(f"{session_url}/join")
    assert response.status_code == 200
    assert response.json()["provider_joined_at"] is not None

    response = await client.post(f"{session_url}/start")
    assert response.status_code == 200
    assert response.json()["status"] == "in_session"

    response = await client.post(f"{session_url}/end")
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = await client.get(session_url)
    assert response.json()["ended_at"] is not None


@pytest.mark.asyncio
async def test_telehealth_issue_report(client: AsyncClient, stored_calendar_config: UUID) -> None:
    created = await client.post(
        BOOKINGS_URL,
        json=booking_payload(stored_calendar_config, at(9), telehealth_platform="zoom"),
    )
    assert created.status_code == 201

    pending = await client.get("/api/v1/notification-requests")
    session_id = pending.json()[0]["payload"]["telehealth_session_id"]

    response = await client.post(
        f"/api/v1/telehealth-sessions/{session_id}/technical-issues",
        json={"details": "no audio"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "technical_issues"

    response = await client.post(f"/api/v1/telehealth-sessions/{session_id}/cancel")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_unknown_telehealth_session(client: AsyncClient) -> None:
    response = await client.post(f"/api/v1/telehealth-sessions/{uuid4()}/start")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_notification_requests(client: AsyncClient, stored_calendar_config: UUID) -> None:
    subject_id = uuid4()
    created = await client.post(
        BOOKINGS_URL,
        json=booking_payload(stored_calendar_config, at(9), subject_id=subject_id),
    )
    appointment_id = created.json()["id"]
    await client.post(
        f"/api/v1/appointments/{appointment_id}/transition", json={"target_status": "cancelled"}
    )

    response = await client.get("/api/v1/notification-requests", params={"status": "pending"})
    assert response.status_code == 200
    events = response.json()
    assert [e["event_type"] for e in events] == [
        "appointment_created",
        "appointment_status_changed",
    ]
    assert events[0]["recipient_id"] == str(stored_calendar_config)
    assert events[1]["recipient_id"] == str(subject_id)
    assert all(e["appointment_id"] == appointment_id for e in events)

    response = await client.get("/api/v1/notification-requests", params={"status": "dispatched"})
    assert response.json() == []

    response = await client.post(f"/api/v1/notification-requests/{events[0]['id']}/dispatched")
    assert response.status_code == 200
    assert response.json()["status"] == "dispatched"

    pending = await client.get("/api/v1/notification-requests")
    assert [e["event_type"] for e in pending.json()] == ["appointment_status_changed"]

    response = await client.post(f"/api/v1/notification-requests/{uuid4()}/dispatched")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_storage_failure_is_retryable() -> None:
    request = Request(
        {
            "type": "http",
            "method": "POST",
            "scheme": "http",
            "server": ("test", 80),
            "path": "/api/v1/bookings",
            "root_path": "",
            "query_string": b"",
            "headers": [],
        }
    )

    response = await app_exception_handler(request, StorageException())

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/api/v1/ping", headers={"X-Request-ID": "abc123"})
    assert response.headers["x-request-id"] == "abc123"
