"""
Application service behind the dashboard availability tile.

The service coordinates fetching raw events via a calendar client adapter,
parsing them, and delegating the free-time calculation to the domain-level
``AvailabilityEngine``. Formatted results are cached per user so repeated
tile refreshes do not hit Microsoft Graph every time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import pendulum
from pendulum import Date, DateTime

from ..domain.availability_engine import AvailabilityEngine
from ..domain.event_parser import parse_events
from ..domain.formatting import FormattedDay, format_days
from ..domain.models import DayAvailability

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 600
DEFAULT_WINDOW_DAYS = 14


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def list_events(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[Dict[str, Any]]:
        """Return raw calendar events overlapping the window."""


@dataclass
class AvailabilityReport:
    """Everything the dashboard needs to render the availability tile."""

    range_start: Date
    range_end: Date
    timezone: str
    days: List[DayAvailability]
    formatted: List[FormattedDay]
    generated_at: DateTime = field(default_factory=pendulum.now)

    def to_dict(self) -> Dict[str, Any]:
        days = []
        for day, text in zip(self.days, self.formatted):
            entry = day.to_dict()
            entry.update(text.to_dict())
            days.append(entry)

        return {
            "range_start": self.range_start.to_date_string(),
            "range_end": self.range_end.to_date_string(),
            "timezone": self.timezone,
            "generated_at": self.generated_at.to_iso8601_string(),
            "days": days,
        }


class AvailabilityService:
    """
    Orchestrates event retrieval, the availability engine and caching.

    At most one cache fill per key runs at a time; concurrent callers for the
    same key wait for it and share the result.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        engine: AvailabilityEngine,
        timezone: str,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._calendar_client = calendar_client
        self._engine = engine
        self._timezone = timezone
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock
        self._cache: Dict[str, Tuple[float, AvailabilityReport]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @property
    def timezone(self) -> str:
        return self._timezone

    @staticmethod
    def default_window(now: DateTime) -> Tuple[Date, Date]:
        """Next Monday (never today) through two weeks later, end exclusive."""
        start = now.next(pendulum.MONDAY).date()
        return start, start.add(days=DEFAULT_WINDOW_DAYS)

    async def get_availability(
        self,
        *,
        user_key: str,
        range_start: Optional[date] = None,
        range_end: Optional[date] = None,
        force_refresh: bool = False,
    ) -> AvailabilityReport:
        """
        Return the availability report for a user, from cache when fresh.

        Raises:
            CalendarAPIError: If the calendar source fails; nothing is cached
        """
        start, end = self._resolve_window(range_start, range_end)
        key = f"availability_{user_key}:{start.to_date_string()}:{end.to_date_string()}"

        if not force_refresh:
            cached = self._cached(key)
            if cached is not None:
                return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                # Another caller may have filled the entry while we waited
                if not force_refresh:
                    cached = self._cached(key)
                    if cached is not None:
                        return cached

                report = await self.compute(start, end)
                self._purge_expired()
                self._cache[key] = (self._clock() + self._cache_ttl_seconds, report)
                logger.info(
                    "Cached availability for %s: %d day(s) for %d seconds",
                    user_key,
                    len(report.days),
                    self._cache_ttl_seconds,
                )
                return report
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def compute(self, range_start: Date, range_end: Date) -> AvailabilityReport:
        """Fetch events for the window and run the engine, bypassing the cache."""
        window_start = pendulum.datetime(
            range_start.year, range_start.month, range_start.day, tz=self._timezone
        )
        window_end = pendulum.datetime(
            range_end.year, range_end.month, range_end.day, tz=self._timezone
        )

        raw_events = await self._calendar_client.list_events(
            start_time=window_start,
            end_time=window_end,
            timezone=self._timezone,
        )
        events = list(parse_events(raw_events, self._timezone))
        logger.debug("Parsed %d of %d calendar events", len(events), len(raw_events))

        days = self._engine.compute(events, range_start, range_end, self._timezone)

        return AvailabilityReport(
            range_start=range_start,
            range_end=range_end,
            timezone=self._timezone,
            days=days,
            formatted=format_days(days),
            generated_at=pendulum.now(self._timezone),
        )

    def invalidate(self, user_key: str | None = None) -> None:
        """Drop cached reports for one user, or for everyone."""
        if user_key is None:
            self._cache.clear()
            return

        prefix = f"availability_{user_key}:"
        for key in [key for key in self._cache if key.startswith(prefix)]:
            del self._cache[key]

    def _cached(self, key: str) -> Optional[AvailabilityReport]:
        entry = self._cache.get(key)
        if entry is None:
            return None

        expires_at, report = entry
        if self._clock() >= expires_at:
            del self._cache[key]
            return None

        return report

    def _purge_expired(self) -> None:
        now = self._clock()
        for key in [key for key, (expires_at, _) in self._cache.items() if now >= expires_at]:
            del self._cache[key]

    def _resolve_window(
        self,
        range_start: Optional[date],
        range_end: Optional[date],
    ) -> Tuple[Date, Date]:
        default_start, default_end = self.default_window(pendulum.now(self._timezone))

        start = _to_date(range_start) if range_start else default_start
        if range_end:
            end = _to_date(range_end)
        elif range_start:
            end = start.add(days=DEFAULT_WINDOW_DAYS)
        else:
            end = default_end

        if end <= start:
            raise ValueError(f"range_end {end} must be after range_start {start}")

        return start, end


def _to_date(value: date) -> Date:
    return pendulum.date(value.year, value.month, value.day)
