"""
Tests for raw event parsing.
"""

import logging

import pendulum

from crashboard.domain.event_parser import parse_event, parse_events
from crashboard.domain.exceptions import EventParseError
from crashboard.domain.models import CalendarEvent

TZ = "Europe/London"


def _graph_event(start="2024-06-03T08:00:00.0000000", end="2024-06-03T09:00:00.0000000", **extra):
    event = {
        "subject": "Standup",
        "start": {"dateTime": start, "timeZone": "UTC"},
        "end": {"dateTime": end, "timeZone": "UTC"},
        "isAllDay": False,
        "responseStatus": {"response": "accepted", "time": "0001-01-01T00:00:00Z"},
    }
    event.update(extra)
    return event


class TestParseEvent:
    def test_graph_event_is_converted_to_local_time(self):
        event = parse_event(_graph_event(), TZ)

        assert isinstance(event, CalendarEvent)
        assert event.start == pendulum.datetime(2024, 6, 3, 9, tz=TZ)
        assert event.end == pendulum.datetime(2024, 6, 3, 10, tz=TZ)
        assert event.start.timezone_name == TZ
        assert event.subject == "Standup"
        assert event.response_status == "accepted"
        assert event.is_busy

    def test_declined_graph_event(self):
        event = parse_event(_graph_event(responseStatus={"response": "declined"}), TZ)

        assert not event.is_busy

    def test_flat_event(self):
        event = parse_event(
            {
                "start": "2024-11-25T10:00:00+00:00",
                "end": "2024-11-25T11:00:00+00:00",
                "isAllDay": True,
                "responseStatus": "tentativelyAccepted",
            },
            TZ,
        )

        assert event.start == pendulum.datetime(2024, 11, 25, 10, tz=TZ)
        assert event.is_all_day
        assert event.response_status == "tentativelyaccepted"

    def test_missing_response_status_defaults_to_none(self):
        raw = _graph_event()
        del raw["responseStatus"]

        assert parse_event(raw, TZ).response_status == "none"

    def test_missing_start_is_an_error_value(self):
        raw = _graph_event()
        del raw["start"]

        outcome = parse_event(raw, TZ)

        assert isinstance(outcome, EventParseError)
        assert outcome.raw is raw

    def test_missing_datetime_key(self):
        outcome = parse_event(_graph_event(start={"timeZone": "UTC"}), TZ)

        assert isinstance(outcome, EventParseError)

    def test_unparseable_timestamp(self):
        outcome = parse_event(_graph_event(start="next tuesday-ish"), TZ)

        assert isinstance(outcome, EventParseError)

    def test_non_mapping(self):
        assert isinstance(parse_event(["not", "an", "event"], TZ), EventParseError)


class TestParseEvents:
    def test_bad_events_are_skipped_and_logged(self, caplog):
        raws = [
            _graph_event(),
            {"subject": "broken"},
            _graph_event(start="2024-06-04T08:00:00.0000000", end="2024-06-04T09:00:00.0000000"),
        ]

        with caplog.at_level(logging.DEBUG, logger="crashboard.domain.event_parser"):
            events = list(parse_events(raws, TZ))

        assert [event.start.day for event in events] == [3, 4]
        assert "Skipping calendar event" in caplog.text
