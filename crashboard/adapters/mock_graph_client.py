"""
Mock calendar client for running without a Microsoft Graph token.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime


class MockCalendarClient:
    """
    Mock client that simulates Microsoft Graph calendarView responses.

    Events in mock_calendar_data.json are placed relative to the requested
    window: ``day`` is an offset in days from the window start and
    ``start``/``end`` are local clock times.
    """

    def __init__(self, data_file: Path | None = None):
        self.data_file = data_file or Path(__file__).parent / "mock_calendar_data.json"
        self._load_calendar_data()

    def _load_calendar_data(self):
        """Load mock calendar data from JSON file."""
        if self.data_file.exists():
            with open(self.data_file, "r", encoding="utf-8") as f:
                self.calendar_events = json.load(f)
        else:
            self.calendar_events = []

    async def list_events(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[Dict[str, Any]]:
        """
        Build Graph-shaped events for the requested window.

        Returns:
            Raw event dicts overlapping the window
        """
        window_start = start_time.in_timezone(timezone).start_of("day")
        events: List[Dict[str, Any]] = []

        for entry in self.calendar_events:
            day = window_start.add(days=int(entry.get("day", 0)))
            start = self._at(day, entry.get("start", "00:00"), timezone)
            end = self._at(day, entry.get("end", "00:00"), timezone)

            if not (start < end_time and end > start_time):
                continue

            events.append(
                {
                    "subject": entry.get("subject", "(No Title)"),
                    "start": {"dateTime": start.to_iso8601_string(), "timeZone": timezone},
                    "end": {"dateTime": end.to_iso8601_string(), "timeZone": timezone},
                    "isAllDay": entry.get("isAllDay", False),
                    "responseStatus": {"response": entry.get("response", "accepted")},
                }
            )

        return events

    @staticmethod
    def _at(day: DateTime, clock: str, timezone: str) -> DateTime:
        hour, minute = (int(part) for part in clock.split(":"))
        return pendulum.datetime(day.year, day.month, day.day, hour, minute, tz=timezone)

    def test_connection(self) -> Dict[str, Any]:
        """
        Mock connection test.

        Returns:
            Mock user profile data
        """
        return {
            "displayName": "Mock User",
            "mail": "mock.user@example.com",
            "userPrincipalName": "mock.user@example.com",
        }
