"""
Adapters layer - External integrations (Microsoft Graph API).
"""

from .graph_client import GraphCalendarClient
from .mock_graph_client import MockCalendarClient

__all__ = ["GraphCalendarClient", "MockCalendarClient"]
