from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from taskdeck.domain.focus.models import FocusLogEntry


class FocusLogRepository(ABC):
    @abstractmethod
    async def add_entry(self, entry: FocusLogEntry) -> None: ...

    @abstractmethod
    async def list_completed_at(self, owner_id: str, since: Optional[datetime] = None) -> List[datetime]: ...
