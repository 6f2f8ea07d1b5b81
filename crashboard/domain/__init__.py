"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability_engine import AvailabilityEngine, compute_availability
from .exceptions import CalendarAPIError, ConfigurationError, CrashBoardError, EventParseError
from .models import CalendarEvent, DayAvailability, TimeInterval, WorkDayPolicy

__all__ = [
    "AvailabilityEngine",
    "compute_availability",
    "CalendarAPIError",
    "ConfigurationError",
    "CrashBoardError",
    "EventParseError",
    "CalendarEvent",
    "DayAvailability",
    "TimeInterval",
    "WorkDayPolicy",
]
