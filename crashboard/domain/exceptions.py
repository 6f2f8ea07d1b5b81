"""
Domain-specific exception hierarchy for the CrashBoard availability engine.
"""


class CrashBoardError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(CrashBoardError):
    """Raised when a working-day policy is malformed."""


class EventParseError(CrashBoardError):
    """
    Describes a single calendar event that could not be normalised.

    The parser returns instances of this class instead of raising them so a
    bad record only ever drops itself from the batch.
    """

    def __init__(self, message: str, raw: object = None):
        super().__init__(message)
        self.raw = raw


class CalendarAPIError(CrashBoardError):
    """Raised when calendar data cannot be fetched from the upstream source."""
