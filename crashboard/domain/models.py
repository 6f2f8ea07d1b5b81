"""
Domain models for interval and availability calculations.
"""

from dataclasses import dataclass, field, fields
from typing import List, Optional

import pendulum
from pendulum import Date, DateTime, Duration

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable time interval with start and end datetime.

    Invariant: start must be before end. The end is treated as exclusive.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in whole minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval overlaps with another."""
        return self.start < other.end and self.end > other.start

    def covers(self, other: "TimeInterval") -> bool:
        """Check if this interval fully contains another."""
        return self.start <= other.start and self.end >= other.end

    def intersect(self, other: "TimeInterval") -> "TimeInterval | None":
        """
        Calculate the intersection of two intervals.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeInterval(start=max(self.start, other.start), end=min(self.end, other.end))

    def clip(self, bounds: "TimeInterval") -> "TimeInterval | None":
        """Clip this interval to fit within bounds, or None if nothing is left."""
        return self.intersect(bounds)

    def expand(self, amount: Duration, bounds: Optional["TimeInterval"] = None) -> "TimeInterval":
        """
        Grow the interval by ``amount`` on both sides.

        When ``bounds`` is given the result is clipped back into it.
        """
        start = self.start - amount
        end = self.end + amount

        if bounds is not None:
            start = max(start, bounds.start)
            end = min(end, bounds.end)

        return TimeInterval(start=start, end=end)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class CalendarEvent:
    """
    A normalised calendar entry as delivered by a calendar source.

    ``start >= end`` is tolerated here; the engine drops such events when it
    clips them to the working day.
    """
    start: DateTime
    end: DateTime
    is_all_day: bool = False
    response_status: str = "none"
    subject: str = ""

    @property
    def is_busy(self) -> bool:
        """All-day entries and declined invitations leave the user free."""
        if self.is_all_day:
            return False
        return self.response_status.lower() != "declined"


@dataclass(frozen=True)
class WorkDayPolicy:
    """
    Working-day rules applied by the availability engine.
    """
    work_start_hour: int = 9
    work_end_hour: int = 17
    lunch_start_hour: int = 13
    lunch_end_hour: int = 14
    buffer_hours: int = 1
    min_free_minutes: int = 120
    max_days_returned: int = 4

    def validate(self) -> "WorkDayPolicy":
        """
        Check field types and ordering.

        Raises:
            ConfigurationError: If any field is out of range
        """
        for policy_field in fields(self):
            value = getattr(self, policy_field.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"{policy_field.name} must be an integer, got {value!r}"
                )
            if value <= 0:
                raise ConfigurationError(
                    f"{policy_field.name} must be a positive integer, got {value}"
                )

        for name in ("work_start_hour", "work_end_hour", "lunch_start_hour", "lunch_end_hour"):
            value = getattr(self, name)
            if value > 24:
                raise ConfigurationError(f"{name} must be between 1 and 24, got {value}")

        if not (
            self.work_start_hour
            < self.lunch_start_hour
            < self.lunch_end_hour
            < self.work_end_hour
        ):
            raise ConfigurationError(
                "Hours must satisfy work_start_hour < lunch_start_hour < "
                f"lunch_end_hour < work_end_hour, got {self.work_start_hour}, "
                f"{self.lunch_start_hour}, {self.lunch_end_hour}, {self.work_end_hour}"
            )

        return self

    def working_day(self, day: Date, timezone: str) -> TimeInterval:
        """Working hours for ``day`` in ``timezone``."""
        return TimeInterval(
            start=_at_hour(day, self.work_start_hour, timezone),
            end=_at_hour(day, self.work_end_hour, timezone),
        )

    def lunch_break(self, day: Date, timezone: str) -> TimeInterval:
        """Fixed lunch block for ``day`` in ``timezone``."""
        return TimeInterval(
            start=_at_hour(day, self.lunch_start_hour, timezone),
            end=_at_hour(day, self.lunch_end_hour, timezone),
        )


def _at_hour(day: Date, hour: int, timezone: str) -> DateTime:
    if hour == 24:
        following = pendulum.date(day.year, day.month, day.day).add(days=1)
        return pendulum.datetime(following.year, following.month, following.day, tz=timezone)
    return pendulum.datetime(day.year, day.month, day.day, hour, tz=timezone)


@dataclass
class DayAvailability:
    """
    Free periods found on one qualifying day.
    """
    date: Date
    periods: List[TimeInterval] = field(default_factory=list)
    total_free_minutes: int = 0

    def to_dict(self) -> dict:
        """JSON-friendly representation."""
        return {
            "date": self.date.to_date_string(),
            "periods": [
                {"start": period.start.to_iso8601_string(), "end": period.end.to_iso8601_string()}
                for period in self.periods
            ],
            "total_free_minutes": self.total_free_minutes,
        }
