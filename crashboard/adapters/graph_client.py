"""
Microsoft Graph API client for fetching calendar events.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError

logger = logging.getLogger(__name__)


class GraphCalendarClient:
    """
    Client for Microsoft Graph API calendar operations.

    Uses the /me/calendarView endpoint, which expands recurring series into
    individual occurrences. The access token is issued elsewhere.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"
    EVENT_FIELDS = "subject,start,end,isAllDay,responseStatus,showAs"

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timeout: float = 30,
        page_size: int = 100,
    ):
        """
        Initialize the Graph API client.

        Args:
            access_token: Valid Microsoft Graph access token
            base_url: Override for the Graph endpoint
            timeout: Per-request timeout in seconds
            page_size: Events requested per page
        """
        self.access_token = access_token
        self.base_url = (base_url or self.GRAPH_API_ENDPOINT).rstrip("/")
        self.timeout = timeout
        self.page_size = page_size
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def list_events(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[Dict[str, Any]]:
        """Fetch raw events without blocking the event loop."""
        return await asyncio.to_thread(
            self.fetch_events, start_time, end_time, timezone
        )

    def fetch_events(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[Dict[str, Any]]:
        """
        Get all calendar events in a time window.

        Args:
            start_time: Start of the time window
            end_time: End of the time window
            timezone: IANA timezone Graph should express event times in

        Returns:
            Raw Graph event objects, following pagination to the end

        Raises:
            CalendarAPIError: If the API call fails
        """
        url: Optional[str] = f"{self.base_url}/me/calendarView"
        params: Optional[Dict[str, Any]] = {
            "startDateTime": start_time.to_iso8601_string(),
            "endDateTime": end_time.to_iso8601_string(),
            "$select": self.EVENT_FIELDS,
            "$orderby": "start/dateTime",
            "$top": self.page_size,
        }
        headers = dict(self.headers, Prefer=f'outlook.timezone="{timezone}"')

        events: List[Dict[str, Any]] = []

        while url:
            data = self._get(url, headers=headers, params=params)
            page = data.get("value", [])
            if not isinstance(page, list):
                raise CalendarAPIError("Microsoft Graph returned a calendarView page without a value list")
            events.extend(page)

            # nextLink already carries the query string
            url = data.get("@odata.nextLink")
            params = None

        logger.debug("Fetched %d calendar events from Microsoft Graph", len(events))
        return events

    def _get(
        self,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = requests.get(url, headers=headers, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch calendar from Microsoft Graph: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Microsoft Graph returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CalendarAPIError(
                f"Microsoft Graph returned an unexpected response: {type(data).__name__}"
            )

        if "error" in data:
            error = data["error"]
            if isinstance(error, dict):
                message = error.get("message", "Graph API error")
            else:
                message = str(error)
            raise CalendarAPIError(f"Microsoft Graph error: {message}")

        return data

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and token by fetching the user profile.

        Returns:
            User profile data

        Raises:
            CalendarAPIError: If connection test fails
        """
        return self._get(f"{self.base_url}/me", headers=self.headers)
