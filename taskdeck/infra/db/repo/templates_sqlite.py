from __future__ import annotations

import json
from typing import List, Optional

import aiosqlite

from taskdeck.domain.common.time import from_iso, to_iso
from taskdeck.domain.tasks.models import Category, Priority
from taskdeck.domain.templates.models import TaskTemplate
from taskdeck.domain.templates.ports import TemplateRepository
from taskdeck.infra.db.connection import Database, remote_errors


class TemplatesSqliteRepo(TemplateRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def add(self, template: TaskTemplate) -> None:
        with remote_errors("add_template"):
            await self._db.execute(
                """
                INSERT INTO task_templates(
                  id, owner_id, name, description, priority, category,
                  estimated_minutes, steps_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    template.id,
                    template.created_by,
                    template.name,
                    template.description,
                    template.priority.value,
                    template.category.value,
                    template.estimated_minutes,
                    json.dumps(template.steps, ensure_ascii=False),
                    to_iso(template.created_at),
                ),
            )

    async def update(self, template: TaskTemplate) -> None:
        with remote_errors("update_template"):
            await self._db.execute(
                """
                UPDATE task_templates
                SET name = ?, description = ?, priority = ?, category = ?,
                    estimated_minutes = ?, steps_json = ?
                WHERE id = ? AND owner_id = ?;
                """,
                (
                    template.name,
                    template.description,
                    template.priority.value,
                    template.category.value,
                    template.estimated_minutes,
                    json.dumps(template.steps, ensure_ascii=False),
                    template.id,
                    template.created_by,
                ),
            )

    async def delete(self, owner_id: str, template_id: str) -> bool:
        with remote_errors("delete_template"):
            count = await self._db.execute(
                "DELETE FROM task_templates WHERE id = ? AND owner_id = ?;",
                (template_id, owner_id),
            )
        return count > 0

    async def get(self, owner_id: str, template_id: str) -> Optional[TaskTemplate]:
        with remote_errors("get_template"):
            row = await self._db.fetchone(
                "SELECT * FROM task_templates WHERE id = ? AND owner_id = ?;",
                (template_id, owner_id),
            )
        return self._row_to_template(row) if row else None

    async def list_for(self, owner_id: str) -> List[TaskTemplate]:
        with remote_errors("list_templates"):
            rows = await self._db.fetchall(
                "SELECT * FROM task_templates WHERE owner_id = ? ORDER BY created_at DESC;",
                (owner_id,),
            )
        return [self._row_to_template(r) for r in rows]

    def _row_to_template(self, r: aiosqlite.Row) -> TaskTemplate:
        try:
            steps = [str(s) for s in json.loads(r["steps_json"] or "[]")]
        except ValueError:
            steps = []
        return TaskTemplate(
            id=r["id"],
            name=r["name"],
            description=r["description"] or "",
            priority=Priority(r["priority"]),
            category=Category(r["category"]),
            created_at=from_iso(r["created_at"]),
            created_by=r["owner_id"],
            estimated_minutes=r["estimated_minutes"],
            steps=steps,
        )
