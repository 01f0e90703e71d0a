from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from taskdeck.domain.calendar.models import CalendarEvent, CalendarEventRef


class CalendarGateway(ABC):
    """Third-party calendar API. Every method raises RemoteError on failure."""

    @abstractmethod
    async def verify(self, token: str) -> None: ...

    @abstractmethod
    async def insert_event(self, token: str, event: CalendarEvent) -> CalendarEventRef: ...

    @abstractmethod
    async def list_events(self, token: str, time_min: datetime, time_max: datetime) -> List[CalendarEventRef]: ...
