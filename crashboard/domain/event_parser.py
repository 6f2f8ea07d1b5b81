"""
Normalise raw calendar records into CalendarEvent objects.

Two shapes are understood:

Microsoft Graph (``/me/calendarView``)::

    {
        "subject": "Standup",
        "start": {"dateTime": "2024-11-25T09:00:00.0000000", "timeZone": "UTC"},
        "end": {"dateTime": "2024-11-25T09:15:00.0000000", "timeZone": "UTC"},
        "isAllDay": false,
        "responseStatus": {"response": "accepted", "time": "..."}
    }

Flat records with ISO 8601 strings for ``start``/``end`` and a plain string
``responseStatus``.
"""

import logging
import re
from typing import Any, Iterable, Iterator, Mapping, Union

import pendulum
from pendulum import DateTime

from .exceptions import EventParseError
from .models import CalendarEvent

logger = logging.getLogger(__name__)

# Graph emits 7 fractional digits; trim to microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

ParsedEvent = Union[CalendarEvent, EventParseError]


def parse_event(raw: Any, timezone: str) -> ParsedEvent:
    """
    Parse a single raw record.

    Returns the CalendarEvent on success, or an EventParseError describing why
    the record was rejected. Nothing is raised for bad input.
    """
    if not isinstance(raw, Mapping):
        return EventParseError(f"Event must be a mapping, got {type(raw).__name__}", raw)

    try:
        start = _parse_moment(raw.get("start"), timezone)
        end = _parse_moment(raw.get("end"), timezone)
    except (KeyError, ValueError, TypeError) as exc:
        return EventParseError(f"Could not parse event times: {exc}", raw)

    return CalendarEvent(
        start=start,
        end=end,
        is_all_day=bool(raw.get("isAllDay", False)),
        response_status=_response_status(raw.get("responseStatus")),
        subject=raw.get("subject") or "",
    )


def parse_events(raws: Iterable[Any], timezone: str) -> Iterator[CalendarEvent]:
    """Yield successfully parsed events, logging and skipping the rest."""
    for raw in raws:
        outcome = parse_event(raw, timezone)
        if isinstance(outcome, EventParseError):
            logger.debug("Skipping calendar event: %s", outcome)
            continue
        yield outcome


def _parse_moment(value: Any, timezone: str) -> DateTime:
    if value is None:
        raise ValueError("missing timestamp")

    source_tz = timezone
    if isinstance(value, Mapping):
        source_tz = value.get("timeZone") or timezone
        value = value["dateTime"]

    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")

    parsed = pendulum.parse(_FRACTION_RE.sub(r"\1", value), tz=source_tz)

    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")

    return parsed.in_timezone(timezone)


def _response_status(value: Any) -> str:
    if isinstance(value, Mapping):
        value = value.get("response")
    if not value:
        return "none"
    return str(value).lower()
