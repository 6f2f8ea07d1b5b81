"""
Core business logic for finding free days in a calendar.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Sequence

import pendulum
from pendulum import Date

from .models import CalendarEvent, DayAvailability, TimeInterval, WorkDayPolicy

logger = logging.getLogger(__name__)

# Free periods this close together are one period.
ADJACENCY_TOLERANCE_SECONDS = 60


class AvailabilityEngine:
    """
    Computes per-day free periods from busy calendar events.

    Algorithm, for each weekday in the requested range:
    1. Clip busy events to working hours and merge them into busy blocks
    2. Add the lunch break unless a busy block already covers it
    3. Expand event blocks by the buffer and merge everything into blocked periods
    4. Free periods are the gaps between blocked periods
    5. Keep the day if enough free time remains, stopping at the day cap
    """

    def __init__(self, policy: WorkDayPolicy | None = None):
        self.policy = (policy or WorkDayPolicy()).validate()

    def compute(
        self,
        events: Iterable[CalendarEvent],
        range_start: date,
        range_end: date,
        timezone: str,
    ) -> List[DayAvailability]:
        """
        Find the first qualifying days in ``[range_start, range_end)``.

        Args:
            events: Calendar events, in any order, possibly overlapping
            range_start: First day to scan
            range_end: Day after the last day to scan
            timezone: IANA timezone the working hours refer to

        Returns:
            Chronologically ordered DayAvailability objects, at most
            ``policy.max_days_returned`` of them
        """
        busy_events = [event for event in events if event.is_busy]
        results: List[DayAvailability] = []

        current = _to_date(range_start)
        last = _to_date(range_end)

        while current < last and len(results) < self.policy.max_days_returned:
            if current.weekday() < 5:
                day = self.availability_for_day(busy_events, current, timezone)
                if day.total_free_minutes >= self.policy.min_free_minutes:
                    results.append(day)
                else:
                    logger.debug(
                        "Skipping %s: %d free minutes below minimum %d",
                        current,
                        day.total_free_minutes,
                        self.policy.min_free_minutes,
                    )
            current = current.add(days=1)

        return results

    def availability_for_day(
        self,
        busy_events: Sequence[CalendarEvent],
        day: Date,
        timezone: str,
    ) -> DayAvailability:
        """
        Compute free periods for a single day, regardless of day filters.

        ``busy_events`` must already exclude all-day and declined entries.
        """
        working_day = self.policy.working_day(day, timezone)
        lunch = self.policy.lunch_break(day, timezone)

        busy_blocks = merge_intervals(self._clip_events(busy_events, working_day, timezone))
        blocked = self.blocked_periods(busy_blocks, lunch, working_day)
        free = merge_intervals(
            subtract_intervals(working_day, blocked),
            tolerance_seconds=ADJACENCY_TOLERANCE_SECONDS,
        )

        return DayAvailability(
            date=day,
            periods=free,
            total_free_minutes=sum(period.duration_minutes() for period in free),
        )

    def blocked_periods(
        self,
        busy_blocks: List[TimeInterval],
        lunch: TimeInterval,
        working_day: TimeInterval,
    ) -> List[TimeInterval]:
        """
        Expand busy blocks by the buffer and combine them with lunch.

        The lunch break itself is not buffered.
        """
        buffer = pendulum.duration(hours=self.policy.buffer_hours)
        blocked = [block.expand(buffer, bounds=working_day) for block in busy_blocks]

        if not any(block.covers(lunch) for block in busy_blocks):
            blocked.append(lunch)

        return merge_intervals(blocked)

    @staticmethod
    def _clip_events(
        events: Sequence[CalendarEvent],
        working_day: TimeInterval,
        timezone: str,
    ) -> List[TimeInterval]:
        clipped: List[TimeInterval] = []

        for event in events:
            if not isinstance(event.start, datetime) or not isinstance(event.end, datetime):
                logger.debug("Skipping event without start/end datetimes: %r", event.subject)
                continue

            # Naive datetimes are read as UTC; results stay in the working-day timezone
            event_start = pendulum.instance(event.start).in_timezone(timezone)
            event_end = pendulum.instance(event.end).in_timezone(timezone)
            if not (event_start < working_day.end and event_end > working_day.start):
                continue

            start = max(event_start, working_day.start)
            end = min(event_end, working_day.end)
            if start >= end:
                continue

            clipped.append(TimeInterval(start=start, end=end))

        return clipped


def merge_intervals(
    intervals: Iterable[TimeInterval],
    tolerance_seconds: int = 0,
) -> List[TimeInterval]:
    """
    Merge overlapping or adjacent intervals.

    Intervals separated by at most ``tolerance_seconds`` are merged too.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    merged: List[TimeInterval] = []
    tolerance = pendulum.duration(seconds=tolerance_seconds)

    for current in sorted(intervals, key=lambda interval: interval.start):
        if merged and current.start <= merged[-1].end + tolerance:
            last = merged[-1]
            merged[-1] = TimeInterval(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged


def subtract_intervals(
    window: TimeInterval,
    blocked: Sequence[TimeInterval],
) -> List[TimeInterval]:
    """
    Return the parts of ``window`` not covered by ``blocked``.

    Example:
    Window: 09:00 - 17:00
    Blocked: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    free: List[TimeInterval] = []
    cursor = window.start

    for block in sorted(blocked, key=lambda interval: interval.start):
        block_start = max(block.start, window.start)
        block_end = min(block.end, window.end)

        if cursor < block_start:
            free.append(TimeInterval(start=cursor, end=block_start))

        cursor = max(cursor, block_end)

    if cursor < window.end:
        free.append(TimeInterval(start=cursor, end=window.end))

    return free


def compute_availability(
    events: Iterable[CalendarEvent],
    range_start: date,
    range_end: date,
    timezone: str,
    policy: WorkDayPolicy | None = None,
) -> List[DayAvailability]:
    """Convenience wrapper around ``AvailabilityEngine(policy).compute``."""
    return AvailabilityEngine(policy).compute(events, range_start, range_end, timezone)


def _to_date(value: date) -> Date:
    return pendulum.date(value.year, value.month, value.day)
