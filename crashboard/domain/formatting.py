"""
Display formatting for availability results.

The strings produced here are consumed by the dashboard tile, so their shape
must stay stable: ``"9am-1pm, 2pm-5pm"`` for the summary and
``"Monday 25 November, between 9am and 1pm"`` for each verbose line.
"""

from dataclasses import dataclass
from typing import List, Sequence

from pendulum import Date, DateTime

from .models import DayAvailability, TimeInterval


@dataclass
class FormattedDay:
    """
    Display strings for one DayAvailability.
    """
    date: Date
    day_label: str
    summary: str
    verbose: str
    total_free_minutes: int

    def to_dict(self) -> dict:
        return {
            "date": self.date.to_date_string(),
            "day_label": self.day_label,
            "summary": self.summary,
            "verbose": self.verbose,
            "total_free_minutes": self.total_free_minutes,
        }


def format_hour_label(moment: DateTime) -> str:
    """
    Render a time as ``9am``, ``1pm`` or ``midday``.

    Minutes are only shown when they are not zero (``9:30am``).
    """
    if moment.hour == 12 and moment.minute == 0:
        return "midday"

    suffix = "am" if moment.hour < 12 else "pm"
    hour = moment.hour % 12 or 12

    if moment.minute:
        return f"{hour}:{moment.minute:02d}{suffix}"
    return f"{hour}{suffix}"


def format_day_label(day: Date) -> str:
    """Format: Weekday D Month, e.g. ``Monday 25 November``."""
    return day.format("dddd D MMMM", locale="en")


def format_period(period: TimeInterval) -> str:
    return f"{format_hour_label(period.start)}-{format_hour_label(period.end)}"


def format_periods(periods: Sequence[TimeInterval]) -> str:
    return ", ".join(format_period(period) for period in periods)


def format_verbose(day: DayAvailability) -> str:
    """One sentence per free period, newline separated."""
    label = format_day_label(day.date)
    return "\n".join(
        f"{label}, between {format_hour_label(period.start)} and {format_hour_label(period.end)}"
        for period in day.periods
    )


def format_day(day: DayAvailability) -> FormattedDay:
    return FormattedDay(
        date=day.date,
        day_label=format_day_label(day.date),
        summary=format_periods(day.periods),
        verbose=format_verbose(day),
        total_free_minutes=day.total_free_minutes,
    )


def format_days(days: Sequence[DayAvailability]) -> List[FormattedDay]:
    return [format_day(day) for day in days]
