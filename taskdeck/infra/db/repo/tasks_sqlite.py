from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Sequence, Tuple

import aiosqlite

from taskdeck.domain.common.errors import RemoteError
from taskdeck.domain.common.time import opt_from_iso, from_iso, to_iso
from taskdeck.domain.tasks.models import (
    Category,
    Permission,
    Priority,
    RecurrencePattern,
    Task,
    TaskStatus,
)
from taskdeck.domain.tasks.ports import TaskRepository
from taskdeck.infra.db.connection import Database, remote_errors

# domain field -> column
_COLUMNS = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "category": "category",
    "status": "status",
    "due_date": "due_date",
    "updated_at": "updated_at",
    "completed_at": "completed_at",
    "order": "sort_order",
    "is_recurring": "is_recurring",
    "recurrence_pattern": "recurrence_pattern",
    "is_urgent": "is_urgent",
    "is_important": "is_important",
    "shared_with": "shared_with_json",
    "calendar_event_id": "calendar_event_id",
}

_ORDER_SQL = "UPDATE tasks SET sort_order = ? WHERE id = ? AND owner_id = ?;"


def _to_db(field: str, value: Any) -> Any:
    if value is None:
        return None
    if field == "shared_with":
        return json.dumps({k: Permission(v).value for k, v in value.items()}, ensure_ascii=False)
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    return value


class TasksSqliteRepo(TaskRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_task(self, task: Task) -> Task:
        with remote_errors("create_task"):
            await self._db.execute(
                """
                INSERT INTO tasks(
                  id, owner_id, title, description, priority, category, status,
                  due_date, created_at, updated_at, completed_at, sort_order,
                  is_recurring, recurrence_pattern, is_urgent, is_important,
                  shared_with_json, calendar_event_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    task.id,
                    task.owner_id,
                    task.title,
                    task.description,
                    task.priority.value,
                    task.category.value,
                    task.status.value,
                    _to_db("due_date", task.due_date),
                    to_iso(task.created_at),
                    to_iso(task.updated_at),
                    _to_db("completed_at", task.completed_at),
                    task.order,
                    _to_db("is_recurring", task.is_recurring),
                    _to_db("recurrence_pattern", task.recurrence_pattern),
                    _to_db("is_urgent", task.is_urgent),
                    _to_db("is_important", task.is_important),
                    _to_db("shared_with", task.shared_with),
                    task.calendar_event_id,
                ),
            )
        return task

    @staticmethod
    def _update_sql(action: str, owner_id: str, task_id: str, fields: Dict[str, Any]) -> Tuple[str, Tuple[Any, ...]]:
        unknown = set(fields) - set(_COLUMNS)
        if unknown:
            raise RemoteError(f"{action}: unsupported fields {sorted(unknown)}")
        assignments = ", ".join(f"{_COLUMNS[k]} = ?" for k in fields)
        params = [_to_db(k, v) for k, v in fields.items()]
        return f"UPDATE tasks SET {assignments} WHERE id = ? AND owner_id = ?;", (*params, task_id, owner_id)

    async def update_task(self, owner_id: str, task_id: str, fields: Dict[str, Any]) -> None:
        sql, params = self._update_sql("update_task", owner_id, task_id, fields)
        if not fields:
            return
        with remote_errors("update_task"):
            count = await self._db.execute(sql, params)
        if count == 0:
            raise RemoteError(f"update_task: task {task_id} does not exist")

    async def update_orders(self, owner_id: str, orders: Dict[str, int]) -> None:
        if not orders:
            return
        with remote_errors("update_orders"):
            await self._db.executemany(_ORDER_SQL, [(order, tid, owner_id) for tid, order in orders.items()])

    async def update_task_and_orders(
        self,
        owner_id: str,
        task_id: str,
        fields: Dict[str, Any],
        orders: Dict[str, int],
    ) -> None:
        sql, params = self._update_sql("update_task_and_orders", owner_id, task_id, fields)
        with remote_errors("update_task_and_orders"):
            async with self._db.transaction() as conn:
                if fields:
                    cur = await conn.execute(sql, params)
                    if cur.rowcount == 0:
                        raise RemoteError(f"update_task_and_orders: task {task_id} does not exist")
                if orders:
                    await conn.executemany(_ORDER_SQL, [(order, tid, owner_id) for tid, order in orders.items()])

    async def delete_task(self, owner_id: str, task_id: str) -> None:
        with remote_errors("delete_task"):
            await self._db.execute("DELETE FROM tasks WHERE id = ? AND owner_id = ?;", (task_id, owner_id))

    async def list_tasks(self, owner_id: str) -> Sequence[Task]:
        with remote_errors("list_tasks"):
            rows = await self._db.fetchall(
                "SELECT * FROM tasks WHERE owner_id = ? ORDER BY sort_order ASC, created_at ASC;",
                (owner_id,),
            )
        return [self._row_to_task(r) for r in rows]

    def _row_to_task(self, r: aiosqlite.Row) -> Task:
        try:
            shared_raw: Dict[str, str] = json.loads(r["shared_with_json"] or "{}")
        except ValueError:
            shared_raw = {}
        shared: Dict[str, Permission] = {}
        for ref, perm in shared_raw.items():
            try:
                shared[ref] = Permission(perm)
            except ValueError:
                continue

        return Task(
            id=r["id"],
            owner_id=r["owner_id"],
            title=r["title"],
            description=r["description"] or "",
            priority=Priority(r["priority"]),
            category=Category(r["category"]),
            status=TaskStatus(r["status"]),
            due_date=opt_from_iso(r["due_date"]),
            created_at=from_iso(r["created_at"]),
            updated_at=from_iso(r["updated_at"]),
            completed_at=opt_from_iso(r["completed_at"]),
            order=int(r["sort_order"]),
            is_recurring=bool(r["is_recurring"]),
            recurrence_pattern=RecurrencePattern(r["recurrence_pattern"]) if r["recurrence_pattern"] else None,
            is_urgent=bool(r["is_urgent"]),
            is_important=bool(r["is_important"]),
            shared_with=shared,
            calendar_event_id=r["calendar_event_id"],
        )
