"""
Tests for the Microsoft Graph calendar adapter.
"""

import asyncio

import pendulum
import pytest
import requests

from crashboard.adapters import graph_client
from crashboard.adapters.graph_client import GraphCalendarClient
from crashboard.domain.exceptions import CalendarAPIError

TZ = "Europe/London"
START = pendulum.datetime(2024, 11, 25, tz=TZ)
END = pendulum.datetime(2024, 12, 9, tz=TZ)


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        return self._payload


class FakeRequests:
    """Replays queued responses and records each call."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls = []

    def __call__(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_get(monkeypatch):
    def install(*responses):
        fake = FakeRequests(*responses)
        monkeypatch.setattr(graph_client.requests, "get", fake)
        return fake

    return install


def test_fetch_events_requests_calendar_view(fake_get):
    fake = fake_get(FakeResponse({"value": [{"subject": "A"}]}))
    client = GraphCalendarClient(access_token="token-123", timeout=5)

    events = client.fetch_events(START, END, TZ)

    assert events == [{"subject": "A"}]
    call = fake.calls[0]
    assert call["url"] == "https://graph.microsoft.com/v1.0/me/calendarView"
    assert call["headers"]["Authorization"] == "Bearer token-123"
    assert call["headers"]["Prefer"] == 'outlook.timezone="Europe/London"'
    assert call["params"]["startDateTime"].startswith("2024-11-25T00:00:00")
    assert call["params"]["endDateTime"].startswith("2024-12-09T00:00:00")
    assert "responseStatus" in call["params"]["$select"]
    assert "isAllDay" in call["params"]["$select"]
    assert call["timeout"] == 5


def test_fetch_events_follows_next_link(fake_get):
    next_link = "https://graph.microsoft.com/v1.0/me/calendarView?$skip=1"
    fake = fake_get(
        FakeResponse({"value": [{"subject": "A"}], "@odata.nextLink": next_link}),
        FakeResponse({"value": [{"subject": "B"}]}),
    )

    events = GraphCalendarClient(access_token="t").fetch_events(START, END, TZ)

    assert [event["subject"] for event in events] == ["A", "B"]
    assert fake.calls[1]["url"] == next_link
    assert fake.calls[1]["params"] is None


def test_list_events_runs_fetch(fake_get):
    fake_get(FakeResponse({"value": [{"subject": "A"}]}))

    events = asyncio.run(GraphCalendarClient(access_token="t").list_events(START, END, TZ))

    assert events == [{"subject": "A"}]


def test_network_error_raises_calendar_api_error(fake_get):
    fake_get(requests.exceptions.ConnectionError("no route"))

    with pytest.raises(CalendarAPIError, match="no route"):
        GraphCalendarClient(access_token="t").fetch_events(START, END, TZ)


def test_http_error_raises_calendar_api_error(fake_get):
    fake_get(FakeResponse({}, status_code=401))

    with pytest.raises(CalendarAPIError, match="401"):
        GraphCalendarClient(access_token="t").fetch_events(START, END, TZ)


def test_graph_error_body_raises_calendar_api_error(fake_get):
    fake_get(FakeResponse({"error": {"code": "InvalidAuthenticationToken", "message": "Token expired"}}))

    with pytest.raises(CalendarAPIError, match="Token expired"):
        GraphCalendarClient(access_token="t").fetch_events(START, END, TZ)


def test_non_object_body_raises_calendar_api_error(fake_get):
    fake_get(FakeResponse([{"subject": "A"}]))

    with pytest.raises(CalendarAPIError, match="unexpected response: list"):
        GraphCalendarClient(access_token="t").fetch_events(START, END, TZ)


def test_string_error_body_raises_calendar_api_error(fake_get):
    fake_get(FakeResponse({"error": "Service unavailable"}))

    with pytest.raises(CalendarAPIError, match="Service unavailable"):
        GraphCalendarClient(access_token="t").fetch_events(START, END, TZ)


def test_non_list_value_raises_calendar_api_error(fake_get):
    fake_get(FakeResponse({"value": {"subject": "A"}}))

    with pytest.raises(CalendarAPIError, match="value list"):
        GraphCalendarClient(access_token="t").fetch_events(START, END, TZ)


def test_test_connection_fetches_profile(fake_get):
    fake = fake_get(FakeResponse({"displayName": "Ada"}))

    profile = GraphCalendarClient(access_token="t", base_url="https://example.test/v1.0/").test_connection()

    assert profile == {"displayName": "Ada"}
    assert fake.calls[0]["url"] == "https://example.test/v1.0/me"
