from datetime import date, datetime

import httpx
import pytest

from cohort_scheduler import create_app
from cohort_scheduler.core.config import settings
from cohort_scheduler.core.database import get_db
from cohort_scheduler.core.dependencies import get_batch_driver, get_graph_client, get_notification_fanout
from cohort_scheduler.services.cohort_registry import CohortRegistry
from cohort_scheduler.services.notification_service import NotificationFanout
from cohort_scheduler.services.scheduler_service import BatchDriver
from tests.conftest import TABLE
from tests.fakes import FakeGraphClient, FakeSender


@pytest.fixture
def graph():
    return FakeGraphClient()


@pytest.fixture
async def client(session_factory, graph, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
    app = create_app()

    async def override_db():
        async with session_factory() as session:
            yield session

    async def override_driver():
        async with session_factory() as session:
            yield BatchDriver(session, client=graph, registry=CohortRegistry(session, [TABLE]))

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_batch_driver] = override_driver
    app.dependency_overrides[get_graph_client] = lambda: graph
    app.dependency_overrides[get_notification_fanout] = lambda: NotificationFanout(
        FakeSender(), FakeSender(), delay_seconds=0
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


async def test_batch_trigger_rejects_wrong_secret(client, graph, add_sessions):
    await add_sessions({"id": 1, "date": date.today()})

    response = await client.post("/api/scheduler/generate-meetings", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED"
    assert graph.token_provider.calls == 0
    assert graph.events == []


async def test_batch_trigger_runs_with_secret(client):
    response = await client.get("/api/scheduler/generate-meetings", headers={"Authorization": "Bearer s3cret"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert set(body["dateRange"]) == {"from", "to"}
    assert body["results"][0]["status"] == "no_sessions"


async def test_reschedule_to_same_slot_is_rejected(client, add_sessions):
    await add_sessions({"id": 1, "date": date(2030, 1, 7)})

    response = await client.post("/api/session/reschedule", json={
        "tableName": TABLE,
        "sessionId": 1,
        "originalDate": "2030-01-07",
        "originalTime": "19:00:00",
        "newDate": "2030-01-07",
        "newTime": "19:00:00",
        "actionType": "postpone",
        "mentorName": "Saswata",
    })

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "VALIDATION_ERROR"
    assert body["status_code"] == 422


async def test_reschedule_options_route(client, add_sessions):
    await add_sessions({"id": 1, "date": date(2030, 1, 7)})

    response = await client.get(
        "/api/session/reschedule-options",
        params={"tableName": TABLE, "sessionId": 1, "actionType": "postpone"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["availableDates"][0] == "2030-01-08"
    assert len(body["availableDates"]) == 30


async def test_swap_route_returns_session_snapshot(client, directory, add_sessions):
    await add_sessions({"id": 1})

    response = await client.post("/api/session/swap-mentor", json={
        "tableName": TABLE,
        "sessionId": 1,
        "swappedMentorId": 2,
        "swappedByName": "Ann",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Mentor swapped successfully"
    assert body["session"]["swappedMentorId"] == 2


async def test_invalid_table_name_is_rejected(client):
    response = await client.post("/api/session/swap-mentor", json={
        "tableName": "users; drop table x",
        "sessionId": 1,
        "swappedMentorId": 2,
    })

    assert response.status_code == 422


async def test_missing_session_is_404(client):
    response = await client.request("DELETE", "/api/session/materials", json={
        "tableName": TABLE,
        "sessionId": 404,
        "link": "https://a.example",
    })

    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


async def test_health_echoes_request_id(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"] == "abc-123"


async def test_adhoc_meeting_uses_calendar_event(client, graph):
    response = await client.post("/api/teams/create-meeting", json={
        "subject": "Mock interview - Asha",
        "startDateTime": "2026-01-06T19:00:00",
        "endDateTime": "2026-01-06T20:00:00",
        "attendees": ["asha@example.com", "asha@example.com", "saswata@example.com"],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["joinUrl"] == "https://teams.example/join/event-1"
    assert body["hasChat"] is True
    event = graph.events[0]
    assert event.subject == "Mock interview - Asha"
    assert event.attendees == ["asha@example.com", "saswata@example.com"]
    assert event.start == datetime(2026, 1, 6, 19, 0, tzinfo=settings.timezone)
    assert graph.recording_enabled == ["meeting-for-event-1"]


async def test_adhoc_meeting_converts_offsets_to_regional_time(client, graph):
    await client.post("/api/teams/create-meeting", json={
        "subject": "Doubt session",
        "startDateTime": "2026-01-06T13:30:00Z",
        "endDateTime": "2026-01-06T14:30:00Z",
    })

    assert graph.events[0].start.replace(tzinfo=None) == datetime(2026, 1, 6, 19, 0)


async def test_adhoc_meeting_falls_back_to_standalone(client, graph):
    graph.calendar_error = RuntimeError("mailbox not licensed")

    response = await client.post("/api/teams/create-meeting", json={
        "subject": "Doubt session",
        "startDateTime": "2026-01-06T19:00:00",
        "endDateTime": "2026-01-06T20:00:00",
    })

    body = response.json()
    assert body["strategy"] == "standalone_meeting"
    assert body["hasChat"] is False
    assert body["joinUrl"] == "https://teams.example/join/standalone-1"


async def test_adhoc_meeting_can_skip_the_invite(client, graph):
    response = await client.post("/api/teams/create-meeting", json={
        "subject": "Doubt session",
        "startDateTime": "2026-01-06T19:00:00",
        "endDateTime": "2026-01-06T20:00:00",
        "useCalendarEvent": False,
    })

    assert response.json()["strategy"] == "standalone_meeting"
    assert graph.events == []


async def test_adhoc_meeting_failure_is_bad_gateway(client, graph):
    graph.calendar_error = RuntimeError("calendar down")
    graph.standalone_error = RuntimeError("meetings down")

    response = await client.post("/api/teams/create-meeting", json={
        "subject": "Doubt session",
        "startDateTime": "2026-01-06T19:00:00",
        "endDateTime": "2026-01-06T20:00:00",
    })

    assert response.status_code == 502
    body = response.json()
    assert body["error_code"] == "EXTERNAL_SERVICE_ERROR"
    assert body["details"]["reason"] == "meetings down"


async def test_adhoc_meeting_rejects_inverted_times(client, graph):
    response = await client.post("/api/teams/create-meeting", json={
        "subject": "Doubt session",
        "startDateTime": "2026-01-06T20:00:00",
        "endDateTime": "2026-01-06T19:00:00",
    })

    assert response.status_code == 422
    assert graph.events == []
