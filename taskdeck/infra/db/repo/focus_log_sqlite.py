from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from taskdeck.domain.common.time import from_iso, to_iso
from taskdeck.domain.focus.models import FocusLogEntry
from taskdeck.domain.focus.ports import FocusLogRepository
from taskdeck.infra.db.connection import Database, remote_errors


class FocusLogSqliteRepo(FocusLogRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def add_entry(self, entry: FocusLogEntry) -> None:
        with remote_errors("add_focus_entry"):
            await self._db.execute(
                "INSERT INTO focus_log(entry_id, owner_id, task_id, minutes, completed_at) VALUES (?, ?, ?, ?, ?);",
                (entry.entry_id, entry.owner_id, entry.task_id, entry.minutes, to_iso(entry.completed_at)),
            )

    async def list_completed_at(self, owner_id: str, since: Optional[datetime] = None) -> List[datetime]:
        with remote_errors("list_focus_entries"):
            rows = await self._db.fetchall(
                "SELECT completed_at FROM focus_log WHERE owner_id = ? ORDER BY completed_at ASC;",
                (owner_id,),
            )
        # offsets may differ between rows, so compare as datetimes rather than in SQL
        stamps = [from_iso(r["completed_at"]) for r in rows]
        if since is not None:
            stamps = [ts for ts in stamps if ts >= since]
        return stamps
