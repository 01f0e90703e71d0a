from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

EVENT_DURATION_MINUTES = 30
DEFAULT_REMINDERS: Tuple[int, ...] = (30,)


@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    description: str
    start: datetime
    end: datetime
    time_zone: str
    reminder_minutes: Tuple[int, ...] = DEFAULT_REMINDERS


@dataclass(frozen=True)
class CalendarEventRef:
    event_id: str
    summary: str = ""
    start: Optional[datetime] = None
    html_link: Optional[str] = None
