"""
Google Calendar v3 REST gateway over httpx.
The caller supplies an OAuth bearer token; obtaining one is out of scope here.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from taskdeck.domain.calendar.models import CalendarEvent, CalendarEventRef
from taskdeck.domain.calendar.ports import CalendarGateway
from taskdeck.domain.common.errors import RemoteError
from taskdeck.domain.common.time import opt_from_iso, to_iso

logger = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/calendar/v3"
DEFAULT_TIMEOUT = 30.0


def event_body(event: CalendarEvent) -> Dict[str, Any]:
    return {
        "summary": event.summary,
        "description": event.description,
        "start": {"dateTime": to_iso(event.start), "timeZone": event.time_zone},
        "end": {"dateTime": to_iso(event.end), "timeZone": event.time_zone},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": m} for m in event.reminder_minutes],
        },
    }


def ref_from_item(item: Dict[str, Any]) -> CalendarEventRef:
    start = item.get("start") or {}
    return CalendarEventRef(
        event_id=str(item.get("id", "")),
        summary=item.get("summary", "") or "",
        start=opt_from_iso(start.get("dateTime")),
        html_link=item.get("htmlLink"),
    )


class GoogleCalendarGateway(CalendarGateway):
    def __init__(
        self,
        calendar_id: str = "primary",
        base_url: str = API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._calendar_id = calendar_id
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self, token: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Authorization": f"Bearer {token}"},
            transport=self._transport,
        )

    @property
    def _calendar_path(self) -> str:
        return f"/calendars/{quote(self._calendar_id, safe='')}"

    async def _request(self, token: str, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            async with self._client(token) as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            raise RemoteError(f"Calendar API returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise RemoteError(f"Calendar API request failed: {type(e).__name__}") from e

    async def verify(self, token: str) -> None:
        await self._request(token, "GET", self._calendar_path)

    async def insert_event(self, token: str, event: CalendarEvent) -> CalendarEventRef:
        data = await self._request(token, "POST", f"{self._calendar_path}/events", json=event_body(event))
        ref = ref_from_item(data)
        if not ref.event_id:
            raise RemoteError("Calendar API response had no event id")
        logger.info("Calendar event created id=%s", ref.event_id)
        return ref

    async def list_events(self, token: str, time_min: datetime, time_max: datetime) -> List[CalendarEventRef]:
        data = await self._request(
            token,
            "GET",
            f"{self._calendar_path}/events",
            params={
                "timeMin": to_iso(time_min),
                "timeMax": to_iso(time_max),
                "showDeleted": "false",
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        )
        return [ref_from_item(item) for item in data.get("items", []) or []]
