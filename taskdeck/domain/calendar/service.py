from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from taskdeck.domain.calendar.models import (
    DEFAULT_REMINDERS,
    EVENT_DURATION_MINUTES,
    CalendarEvent,
    CalendarEventRef,
)
from taskdeck.domain.calendar.ports import CalendarGateway
from taskdeck.domain.common.errors import PreconditionError, RemoteError
from taskdeck.domain.common.models import MutationResult, OperationResult
from taskdeck.domain.common.ports import Clock
from taskdeck.domain.tasks.models import Task
from taskdeck.domain.tasks.service import TaskService

logger = logging.getLogger(__name__)

NO_DUE_DATE = "Task must have a due date to be added to Calendar."
NOT_CONNECTED = "Calendar is not connected. Use /calendar_connect first."


def build_event(task: Task, tz_name: str, reminders: Sequence[int] = DEFAULT_REMINDERS) -> CalendarEvent:
    if task.due_date is None:
        raise PreconditionError(NO_DUE_DATE)
    return CalendarEvent(
        summary=task.title,
        description=task.description or "",
        start=task.due_date,
        end=task.due_date + timedelta(minutes=EVENT_DURATION_MINUTES),
        time_zone=tz_name,
        reminder_minutes=tuple(reminders) or DEFAULT_REMINDERS,
    )


class CalendarService:
    """
    Calendar connection per owner plus task export.
    Tokens live in memory only; a restart means connecting again.
    """

    def __init__(
        self,
        gateway: CalendarGateway,
        clock: Clock,
        tz_name: str,
        default_token: Optional[str] = None,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._tz_name = tz_name
        self._default_token = default_token or None
        self._tokens: Dict[str, str] = {}

    def is_connected(self, owner_id: str) -> bool:
        return owner_id in self._tokens

    async def connect(self, owner_id: str, token: Optional[str] = None) -> OperationResult:
        token = (token or "").strip() or self._default_token
        if not token:
            return OperationResult.fail("No calendar access token available.")
        try:
            await self._gateway.verify(token)
        except RemoteError as e:
            logger.warning("Calendar connect failed owner=%s: %s", owner_id, e, exc_info=True)
            return OperationResult.fail("Could not connect to Google Calendar.")
        self._tokens[owner_id] = token
        logger.info("Calendar connected owner=%s", owner_id)
        return OperationResult.ok()

    def disconnect(self, owner_id: str) -> OperationResult:
        if self._tokens.pop(owner_id, None) is None:
            return OperationResult.fail("Calendar is not connected.")
        logger.info("Calendar disconnected owner=%s", owner_id)
        return OperationResult.ok()

    async def insert_event(
        self,
        owner_id: str,
        task: Task,
        reminders: Sequence[int] = DEFAULT_REMINDERS,
    ) -> MutationResult[CalendarEventRef]:
        try:
            event = build_event(task, self._tz_name, reminders)
        except PreconditionError as e:
            return MutationResult.fail(str(e))
        token = self._tokens.get(owner_id)
        if token is None:
            return MutationResult.fail(NOT_CONNECTED)
        try:
            ref = await self._gateway.insert_event(token, event)
        except RemoteError as e:
            logger.warning("Calendar insert failed task=%s: %s", task.id, e, exc_info=True)
            return MutationResult.fail("Failed to add task to Google Calendar.")
        return MutationResult.ok(ref)

    async def export_task(self, tasks: TaskService, task_id: str) -> MutationResult[Task]:
        """Insert the event, then remember its id on the task."""
        task = tasks.store.find(task_id)
        if task is None:
            return MutationResult.fail("Task not found.")
        inserted = await self.insert_event(tasks.owner_id, task)
        if not inserted.success or inserted.value is None:
            return MutationResult.fail(inserted.error or "Failed to add task to Google Calendar.")
        return await tasks.edit(task_id, {"calendar_event_id": inserted.value.event_id})

    async def upcoming(self, owner_id: str, days: int = 7) -> List[CalendarEventRef]:
        token = self._tokens.get(owner_id)
        if token is None:
            return []
        now = self._clock.now()
        try:
            return await self._gateway.list_events(token, now, now + timedelta(days=days))
        except RemoteError as e:
            logger.warning("Calendar list failed owner=%s: %s", owner_id, e, exc_info=True)
            return []
