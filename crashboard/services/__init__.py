"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityReport, AvailabilityService, CalendarClientProtocol

__all__ = ["AvailabilityReport", "AvailabilityService", "CalendarClientProtocol"]
