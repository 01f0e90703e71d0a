from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from taskdeck.domain.common.errors import DomainError, NotFoundError, RemoteError
from taskdeck.domain.common.models import MutationResult, OperationResult
from taskdeck.domain.common.ports import Clock, IdGenerator
from taskdeck.domain.tasks.models import (
    Permission,
    Quadrant,
    Task,
    TaskDraft,
    TaskStatus,
)
from taskdeck.domain.tasks.ports import TaskRepository
from taskdeck.domain.tasks.rules import (
    coerce_enum,
    normalize_edit_fields,
    validate_description,
    validate_due_date,
    validate_recurrence,
    validate_share_target,
    validate_title,
)
from taskdeck.domain.tasks.store import TaskStore
from taskdeck.domain.tasks.views import plan_kanban_move, quadrant_changes, splice

logger = logging.getLogger(__name__)


class TaskService:
    """
    Task mutation protocol. No aiogram. No sqlite.

    Every write goes to the repository first and is applied to the local
    TaskStore only after it succeeds, so a failed call leaves the store
    untouched. Failures come back as MutationResult values, never as
    exceptions.
    """

    def __init__(
        self,
        repo: TaskRepository,
        clock: Clock,
        ids: IdGenerator,
        owner_id: str,
        store: Optional[TaskStore] = None,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self._ids = ids
        self._owner_id = owner_id
        self.store = store if store is not None else TaskStore()

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def tasks(self) -> List[Task]:
        return self.store.tasks

    async def load(self) -> OperationResult:
        try:
            tasks = await self._repo.list_tasks(self._owner_id)
        except RemoteError as e:
            logger.warning("Loading tasks failed owner=%s: %s", self._owner_id, e, exc_info=True)
            return OperationResult.fail("Failed to load tasks. Please try again later.")
        self.store.replace_all(tasks)
        logger.info("Loaded %d tasks owner=%s", len(tasks), self._owner_id)
        return OperationResult.ok()

    # ---- create / edit / delete ----

    async def create(self, draft: TaskDraft) -> MutationResult[Task]:
        try:
            title = validate_title(draft.title)
            description = validate_description(draft.description)
            due_date = validate_due_date(draft.due_date)
            pattern = validate_recurrence(draft.is_recurring, draft.recurrence_pattern)
        except DomainError as e:
            return MutationResult.fail(str(e))

        now = self._clock.now()
        task = Task(
            id=self._ids.new_id(),
            owner_id=self._owner_id,
            title=title,
            description=description,
            priority=draft.priority,
            category=draft.category,
            status=TaskStatus.PENDING,
            due_date=due_date,
            created_at=now,
            updated_at=now,
            completed_at=None,
            order=self.store.next_order(),
            is_recurring=draft.is_recurring,
            recurrence_pattern=pattern,
            is_urgent=draft.is_urgent,
            is_important=draft.is_important,
        )
        try:
            created = await self._repo.create_task(task)
        except RemoteError as e:
            logger.warning("Creating task failed owner=%s: %s", self._owner_id, e, exc_info=True)
            return MutationResult.fail("Failed to add task. Please try again.")

        self.store.put(created)
        logger.debug("Task created id=%s order=%s", created.id, created.order)
        return MutationResult.ok(created)

    async def edit(self, task_id: str, fields: Mapping[str, Any]) -> MutationResult[Task]:
        try:
            current = self.store.get(task_id)
            changes = normalize_edit_fields(fields)
        except DomainError as e:
            return MutationResult.fail(str(e))

        now = self._clock.now()
        if "status" in changes and changes["status"] != current.status:
            changes["completed_at"] = self._completed_at_for(current, changes["status"], now)
        changes["updated_at"] = now
        return await self._write(current, changes)

    async def toggle(self, task_id: str) -> MutationResult[Task]:
        try:
            current = self.store.get(task_id)
        except NotFoundError as e:
            return MutationResult.fail(str(e))

        now = self._clock.now()
        new_status = TaskStatus.PENDING if current.is_completed else TaskStatus.COMPLETED
        changes: Dict[str, Any] = {
            "status": new_status,
            "completed_at": self._completed_at_for(current, new_status, now),
            "updated_at": now,
        }
        return await self._write(current, changes)

    async def delete(self, task_id: str) -> MutationResult[Task]:
        if task_id not in self.store:
            return MutationResult.fail("Task not found.")
        try:
            await self._repo.delete_task(self._owner_id, task_id)
        except RemoteError as e:
            logger.warning("Deleting task failed id=%s: %s", task_id, e, exc_info=True)
            return MutationResult.fail("Failed to delete task. Please try again.")
        removed = self.store.remove(task_id)
        return MutationResult.ok(removed)

    # ---- ordering ----

    async def reorder(self, source_index: int, destination_index: int) -> MutationResult[List[Task]]:
        """Splice over the full ordered collection; `updated_at` is left alone."""
        try:
            reordered = splice(self.store.tasks, source_index, destination_index)
        except DomainError as e:
            return MutationResult.fail(str(e))
        return await self._write_orders(reordered)

    async def move_task(self, task_id: str, offset: int) -> MutationResult[List[Task]]:
        """Move one task up (negative) or down (positive) in the manual order."""
        ordered = self.store.tasks
        ids = [t.id for t in ordered]
        if task_id not in ids:
            return MutationResult.fail("Task not found.")
        src = ids.index(task_id)
        dst = max(0, min(len(ids) - 1, src + offset))
        if dst == src:
            return MutationResult.ok(ordered, changed=False)
        return await self.reorder(src, dst)

    async def move_kanban(
        self,
        visible_tasks: Sequence[Task],
        source_column: TaskStatus,
        source_index: int,
        destination_column: TaskStatus,
        destination_index: int,
    ) -> MutationResult[List[Task]]:
        if source_column == destination_column and source_index == destination_index:
            return MutationResult.ok(self.store.tasks, changed=False)
        try:
            plan = plan_kanban_move(
                self.store.tasks,
                visible_tasks,
                source_column,
                source_index,
                destination_column,
                destination_index,
            )
        except DomainError as e:
            return MutationResult.fail(str(e))

        # status and orders are written in a single repository call
        current = self.store.get(plan.task_id)
        changes: Dict[str, Any] = {}
        if plan.status_changes:
            now = self._clock.now()
            changes = {
                "status": destination_column,
                "completed_at": self._completed_at_for(current, destination_column, now),
                "updated_at": now,
            }
        ordered = self.store.tasks
        if plan.source_index != plan.destination_index:
            ordered = splice(ordered, plan.source_index, plan.destination_index)
        before = {t.id: t.order for t in self.store.tasks}
        orders = {t.id: t.order for t in ordered if before[t.id] != t.order}
        if not changes and not orders:
            return MutationResult.ok(self.store.tasks, changed=False)

        try:
            await self._repo.update_task_and_orders(self._owner_id, plan.task_id, changes, orders)
        except RemoteError as e:
            logger.warning("Moving task failed id=%s: %s", plan.task_id, e, exc_info=True)
            return MutationResult.fail("Failed to move task. Please try again.")
        self.store.put_many([replace(t, **changes) if t.id == plan.task_id else t for t in ordered])
        return MutationResult.ok(self.store.tasks)

    # ---- eisenhower ----

    async def move_to_quadrant(self, task_id: str, quadrant: Any) -> MutationResult[Task]:
        try:
            current = self.store.get(task_id)
            target = coerce_enum(Quadrant, quadrant, "quadrant")
        except DomainError as e:
            return MutationResult.fail(str(e))

        changes: Dict[str, Any] = dict(quadrant_changes(current, target))
        if not changes:
            return MutationResult.ok(current, changed=False)
        changes["updated_at"] = self._clock.now()
        return await self._write(current, changes)

    # ---- sharing ----

    async def share(self, task_id: str, user_ref: str, permission: Any) -> MutationResult[Task]:
        try:
            current = self.store.get(task_id)
            ref = validate_share_target(user_ref)
            perm = coerce_enum(Permission, permission, "permission")
        except DomainError as e:
            return MutationResult.fail(str(e))

        shared = dict(current.shared_with)
        shared[ref] = perm
        return await self._write(current, {"shared_with": shared, "updated_at": self._clock.now()})

    async def unshare(self, task_id: str, user_ref: str) -> MutationResult[Task]:
        try:
            current = self.store.get(task_id)
        except NotFoundError as e:
            return MutationResult.fail(str(e))
        if user_ref not in current.shared_with:
            return MutationResult.fail("Task is not shared with that user.")

        shared = {k: v for k, v in current.shared_with.items() if k != user_ref}
        return await self._write(current, {"shared_with": shared, "updated_at": self._clock.now()})

    # ---- internals ----

    @staticmethod
    def _completed_at_for(task: Task, status: TaskStatus, now):
        if status == TaskStatus.COMPLETED:
            return max(now, task.created_at)
        return None

    async def _write(self, current: Task, changes: Dict[str, Any]) -> MutationResult[Task]:
        try:
            await self._repo.update_task(self._owner_id, current.id, changes)
        except RemoteError as e:
            logger.warning("Updating task failed id=%s: %s", current.id, e, exc_info=True)
            return MutationResult.fail("Failed to update task. Please try again.")
        updated = replace(current, **changes)
        self.store.put(updated)
        return MutationResult.ok(updated)

    async def _write_orders(self, reordered: List[Task]) -> MutationResult[List[Task]]:
        before = {t.id: t.order for t in self.store.tasks}
        orders = {t.id: t.order for t in reordered if before.get(t.id) != t.order}
        if not orders:
            return MutationResult.ok(reordered, changed=False)
        try:
            await self._repo.update_orders(self._owner_id, orders)
        except RemoteError as e:
            logger.warning("Reordering tasks failed owner=%s: %s", self._owner_id, e, exc_info=True)
            return MutationResult.fail("Failed to reorder tasks. Please try again.")
        self.store.put_many(reordered)
        return MutationResult.ok(reordered)
