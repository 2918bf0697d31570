import asyncio
import json
from datetime import datetime, timedelta

import aiohttp
import pytest

from cohort_scheduler.core.config import settings
from cohort_scheduler.core.errors import ConfigurationError
from cohort_scheduler.core.exceptions import GraphAPIError, MissingJoinUrlException
from cohort_scheduler.services.graph_client import GraphClient, GraphTokenProvider, load_graph_config

CONFIG = {
    "tenant_id": "tenant",
    "client_id": "client",
    "client_secret": "secret",
    "organizer_user_id": "organizer@example.com",
    "timeout": 5,
    "timezone": "Asia/Kolkata",
}
USER_BASE = "https://graph.microsoft.com/v1.0/users/organizer@example.com"


class TokenEndpoint:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    async def __call__(self, url, form):
        self.requests.append((url, form))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class GraphEndpoint:
    """Replays (status, body) pairs and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def __call__(self, method, url, headers, payload):
        self.calls.append((method, url, headers, payload))
        status, body = self.responses.pop(0)
        return status, body if isinstance(body, str) else json.dumps(body)


def graph_client(monkeypatch, *responses):
    provider = GraphTokenProvider(CONFIG)
    monkeypatch.setattr(provider, "_request_token", TokenEndpoint({"access_token": "tok", "expires_in": 3600}))
    client = GraphClient(provider)
    endpoint = GraphEndpoint(*responses)
    monkeypatch.setattr(client, "_send", endpoint)
    return client, endpoint


def test_missing_settings_are_named():
    with pytest.raises(ConfigurationError) as exc_info:
        load_graph_config({**CONFIG, "client_secret": None, "organizer_user_id": ""})

    assert exc_info.value.details == {"missing": ["MS_CLIENT_SECRET", "MS_ORGANIZER_USER_ID"]}


async def test_token_is_cached_until_expiry(monkeypatch):
    provider = GraphTokenProvider(CONFIG)
    endpoint = TokenEndpoint(
        {"access_token": "first", "expires_in": 3600},
        {"access_token": "second", "expires_in": 3600},
    )
    monkeypatch.setattr(provider, "_request_token", endpoint)

    assert await provider.get_token() == "first"
    assert await provider.get_token() == "first"
    assert len(endpoint.requests) == 1

    url, form = endpoint.requests[0]
    assert url == "https://login.microsoftonline.com/tenant/oauth2/v2.0/token"
    assert form["grant_type"] == "client_credentials"
    assert form["scope"] == "https://graph.microsoft.com/.default"

    provider._expires_at = 0.0
    assert await provider.get_token() == "second"
    assert len(endpoint.requests) == 2


async def test_short_lived_token_is_refetched(monkeypatch):
    provider = GraphTokenProvider(CONFIG)
    endpoint = TokenEndpoint(
        {"access_token": "brief", "expires_in": 30},
        {"access_token": "next", "expires_in": 3600},
    )
    monkeypatch.setattr(provider, "_request_token", endpoint)

    await provider.get_token()

    assert await provider.get_token() == "next"


@pytest.mark.parametrize("response, reason", [
    ({"error": "invalid_client", "error_description": "AADSTS7000215: Invalid client secret"},
     "AADSTS7000215: Invalid client secret"),
    (aiohttp.ClientConnectionError("connection refused"), "connection refused"),
    (asyncio.TimeoutError(), ""),
])
async def test_token_failure_is_a_configuration_error(monkeypatch, response, reason):
    provider = GraphTokenProvider(CONFIG)
    monkeypatch.setattr(provider, "_request_token", TokenEndpoint(response))

    with pytest.raises(ConfigurationError) as exc_info:
        await provider.get_token()

    assert exc_info.value.details["reason"] == reason


async def test_non_success_status_raises(monkeypatch):
    client, _ = graph_client(monkeypatch, (403, '{"error": {"code": "Forbidden"}}'))

    with pytest.raises(GraphAPIError) as exc_info:
        await client.create_online_meeting("Subject", datetime(2026, 1, 6, 19), datetime(2026, 1, 6, 20, 30))

    assert exc_info.value.status == 403
    assert exc_info.value.operation == "Create online meeting"


async def test_calendar_event_payload(monkeypatch):
    client, endpoint = graph_client(monkeypatch, (201, {"onlineMeeting": {"joinUrl": "https://teams.example/join/1"}}))
    start = datetime(2026, 1, 6, 19, 0, tzinfo=settings.timezone)

    join_url = await client.create_calendar_event(
        "Cohort Basic 1.1 - Web Development - Saswata",
        start,
        start + timedelta(minutes=90),
        ["saswata@example.com", "asha@example.com"],
    )

    assert join_url == "https://teams.example/join/1"
    method, url, headers, payload = endpoint.calls[0]
    assert (method, url) == ("POST", f"{USER_BASE}/events")
    assert headers["Authorization"] == "Bearer tok"
    assert payload["start"] == {"dateTime": "2026-01-06T19:00:00", "timeZone": "Asia/Kolkata"}
    assert payload["end"] == {"dateTime": "2026-01-06T20:30:00", "timeZone": "Asia/Kolkata"}
    assert payload["isOnlineMeeting"] is True
    assert payload["onlineMeetingProvider"] == "teamsForBusiness"
    assert payload["attendees"] == [
        {"emailAddress": {"address": "saswata@example.com"}, "type": "required"},
        {"emailAddress": {"address": "asha@example.com"}, "type": "required"},
    ]


async def test_calendar_event_without_join_url(monkeypatch):
    client, _ = graph_client(monkeypatch, (201, {"id": "event-1"}))

    with pytest.raises(MissingJoinUrlException):
        await client.create_calendar_event("S", datetime(2026, 1, 6, 19), datetime(2026, 1, 6, 20), [])


async def test_meeting_lookup_filters_on_join_url(monkeypatch):
    client, endpoint = graph_client(
        monkeypatch,
        (200, {"value": [{"id": "meeting-1"}]}),
        (200, {"value": []}),
    )
    join_url = "https://teams.microsoft.com/l/meetup-join/19:abc@thread.v2/0?context=x"

    assert await client.find_online_meeting_id(join_url) == "meeting-1"
    assert await client.find_online_meeting_id(join_url) is None

    _, url, _, _ = endpoint.calls[0]
    assert url.startswith(f"{USER_BASE}/onlineMeetings?$filter=JoinWebUrl%20eq%20'")
    assert "https%3A%2F%2Fteams.microsoft.com%2Fl%2Fmeetup-join%2F19%3Aabc%40thread.v2" in url


async def test_enable_auto_recording_patches_meeting(monkeypatch):
    client, endpoint = graph_client(monkeypatch, (204, ""))

    await client.enable_auto_recording("meeting-1")

    assert endpoint.calls[0][0:2] == ("PATCH", f"{USER_BASE}/onlineMeetings/meeting-1")
    assert endpoint.calls[0][3] == {"recordAutomatically": True}


async def test_share_link_requests_anonymous_view(monkeypatch):
    client, endpoint = graph_client(monkeypatch, (200, {"link": {"webUrl": "https://share.example/item-42"}}))

    assert await client.create_share_link("item-42") == "https://share.example/item-42"
    method, url, _, payload = endpoint.calls[0]
    assert (method, url) == ("POST", f"{USER_BASE}/drive/items/item-42/createLink")
    assert payload == {"type": "view", "scope": "anonymous"}


async def test_missing_recordings_folder_lists_nothing(monkeypatch):
    client, endpoint = graph_client(monkeypatch, (200, {"name": "Recordings"}))

    assert await client.list_recordings() == []
    assert len(endpoint.calls) == 1


async def test_recordings_listed_from_folder_children(monkeypatch):
    client, endpoint = graph_client(
        monkeypatch,
        (200, {"id": "folder-1"}),
        (200, {"value": [
            {"id": "item-42", "name": "Cohort Basic 1.1 - DSA-20260105_1.mp4", "webUrl": "https://drive.example/42",
             "createdDateTime": "2026-01-05T16:27:09Z"},
            {"name": "no id"},
        ]}),
    )

    recordings = await client.list_recordings()

    assert [r.id for r in recordings] == ["item-42"]
    assert recordings[0].web_url == "https://drive.example/42"
    assert endpoint.calls[0][1] == f"{USER_BASE}/drive/root:/Recordings"
    assert endpoint.calls[1][1] == f"{USER_BASE}/drive/items/folder-1/children"
