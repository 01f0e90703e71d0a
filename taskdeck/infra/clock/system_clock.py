from __future__ import annotations

from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from taskdeck.domain.common.ports import Clock


class SystemClock(Clock):
    def __init__(self, tz_name: str) -> None:
        self._tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self._tz)

    @property
    def tz(self) -> tzinfo:
        return self._tz
