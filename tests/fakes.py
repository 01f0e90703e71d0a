"""
In-memory stand-ins for the ports, shared by the service tests.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional, Sequence, Set

from taskdeck.domain.auth.models import User
from taskdeck.domain.auth.ports import AuthProvider
from taskdeck.domain.calendar.models import CalendarEvent, CalendarEventRef
from taskdeck.domain.calendar.ports import CalendarGateway
from taskdeck.domain.common.errors import ConflictError, NotFoundError, RemoteError, ValidationError
from taskdeck.domain.common.ports import Clock, IdGenerator
from taskdeck.domain.focus.models import FocusLogEntry
from taskdeck.domain.focus.ports import FocusLogRepository
from taskdeck.domain.suggestions.ports import SuggestionProvider
from taskdeck.domain.tasks.models import Category, Priority, Task, TaskStatus
from taskdeck.domain.tasks.ports import TaskRepository
from taskdeck.domain.templates.models import TaskTemplate
from taskdeck.domain.templates.ports import TemplateRepository

UTC = timezone.utc
T0 = datetime(2026, 3, 4, 9, 0, tzinfo=UTC)  # a Wednesday


class FixedClock(Clock):
    def __init__(self, now: datetime = T0, tz: tzinfo = UTC) -> None:
        self._now = now
        self._tz = tz

    def now(self) -> datetime:
        return self._now

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def advance(self, **kwargs: Any) -> None:
        self._now = self._now + timedelta(**kwargs)


class SeqIds(IdGenerator):
    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._n = 0

    def new_id(self) -> str:
        self._n += 1
        return f"{self._prefix}{self._n}"


def make_task(
    task_id: str,
    order: int,
    *,
    title: Optional[str] = None,
    description: str = "",
    priority: Priority = Priority.MEDIUM,
    category: Category = Category.OTHER,
    status: TaskStatus = TaskStatus.PENDING,
    due_date: Optional[datetime] = None,
    created_at: datetime = T0,
    completed_at: Optional[datetime] = None,
    owner_id: str = "u1",
    **extra: Any,
) -> Task:
    if status == TaskStatus.COMPLETED and completed_at is None:
        completed_at = created_at
    return Task(
        id=task_id,
        owner_id=owner_id,
        title=title or f"Task {task_id}",
        description=description,
        priority=priority,
        category=category,
        status=status,
        due_date=due_date,
        created_at=created_at,
        updated_at=created_at,
        completed_at=completed_at,
        order=order,
        **extra,
    )


class InMemoryTaskRepo(TaskRepository):
    """
    Set `fail = True` to make every call raise RemoteError, or name single
    methods in `fail_on`.
    """

    def __init__(self, tasks: Sequence[Task] = ()) -> None:
        self.rows: Dict[str, Task] = {t.id: t for t in tasks}
        self.fail = False
        self.fail_on: Set[str] = set()
        self.calls: List[str] = []

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail or name in self.fail_on:
            raise RemoteError(f"{name} failed")

    async def create_task(self, task: Task) -> Task:
        self._check("create_task")
        self.rows[task.id] = task
        return task

    async def update_task(self, owner_id: str, task_id: str, fields: Dict[str, Any]) -> None:
        self._check("update_task")
        if task_id not in self.rows:
            raise RemoteError("no such task")
        self.rows[task_id] = replace(self.rows[task_id], **fields)

    async def update_orders(self, owner_id: str, orders: Dict[str, int]) -> None:
        self._check("update_orders")
        for task_id, order in orders.items():
            self.rows[task_id] = replace(self.rows[task_id], order=order)

    async def update_task_and_orders(self, owner_id: str, task_id: str, fields: Dict[str, Any], orders: Dict[str, int]) -> None:
        self._check("update_task_and_orders")
        snapshot = dict(self.rows)
        try:
            await self.update_task(owner_id, task_id, fields)
            await self.update_orders(owner_id, orders)
        except RemoteError:
            self.rows = snapshot
            raise

    async def delete_task(self, owner_id: str, task_id: str) -> None:
        self._check("delete_task")
        self.rows.pop(task_id, None)

    async def list_tasks(self, owner_id: str) -> Sequence[Task]:
        self._check("list_tasks")
        return [t for t in self.rows.values() if t.owner_id == owner_id]


class InMemoryFocusLog(FocusLogRepository):
    def __init__(self) -> None:
        self.entries: List[FocusLogEntry] = []
        self.fail = False

    async def add_entry(self, entry: FocusLogEntry) -> None:
        if self.fail:
            raise RemoteError("focus log down")
        self.entries.append(entry)

    async def list_completed_at(self, owner_id: str, since: Optional[datetime] = None) -> List[datetime]:
        return [
            e.completed_at
            for e in self.entries
            if e.owner_id == owner_id and (since is None or e.completed_at >= since)
        ]


class ScriptedProvider(SuggestionProvider):
    def __init__(self, reply: str = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.requests: List[tuple] = []

    async def complete(self, instructions: str, user_message: str) -> str:
        self.requests.append((instructions, user_message))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeCalendarGateway(CalendarGateway):
    def __init__(self) -> None:
        self.valid_tokens = {"good-token"}
        self.inserted: List[CalendarEvent] = []
        self.fail_insert = False

    async def verify(self, token: str) -> None:
        if token not in self.valid_tokens:
            raise RemoteError("401 unauthorized")

    async def insert_event(self, token: str, event: CalendarEvent) -> CalendarEventRef:
        if self.fail_insert:
            raise RemoteError("500")
        self.inserted.append(event)
        return CalendarEventRef(event_id=f"ev{len(self.inserted)}", summary=event.summary, start=event.start)

    async def list_events(self, token: str, time_min: datetime, time_max: datetime) -> List[CalendarEventRef]:
        return [
            CalendarEventRef(event_id=f"ev{i}", summary=e.summary, start=e.start)
            for i, e in enumerate(self.inserted, start=1)
            if time_min <= e.start <= time_max
        ]


class InMemoryTemplateRepo(TemplateRepository):
    def __init__(self) -> None:
        self.rows: Dict[str, TaskTemplate] = {}

    async def add(self, template: TaskTemplate) -> None:
        self.rows[template.id] = template

    async def update(self, template: TaskTemplate) -> None:
        self.rows[template.id] = template

    async def delete(self, owner_id: str, template_id: str) -> bool:
        t = self.rows.get(template_id)
        if t is None or t.created_by != owner_id:
            return False
        del self.rows[template_id]
        return True

    async def get(self, owner_id: str, template_id: str) -> Optional[TaskTemplate]:
        t = self.rows.get(template_id)
        return t if t is not None and t.created_by == owner_id else None

    async def list_for(self, owner_id: str) -> List[TaskTemplate]:
        return [t for t in self.rows.values() if t.created_by == owner_id]


class InMemoryAuthProvider(AuthProvider):
    def __init__(self) -> None:
        self.users: Dict[str, tuple] = {}
        self.resets: Dict[str, str] = {}
        self.down = False

    def _check(self) -> None:
        if self.down:
            raise RemoteError("auth backend down")

    async def sign_up(self, email: str, password: str, display_name: str) -> User:
        self._check()
        if email in self.users:
            raise ConflictError("An account with this email already exists.")
        user = User(id=f"user-{len(self.users) + 1}", email=email, display_name=display_name, created_at=T0)
        self.users[email] = (user, password)
        return user

    async def sign_in(self, email: str, password: str) -> User:
        self._check()
        row = self.users.get(email)
        if row is None or row[1] != password:
            raise ValidationError("Invalid email or password.")
        return row[0]

    async def request_reset(self, email: str) -> str:
        self._check()
        if email not in self.users:
            raise NotFoundError("No account with that email.")
        token = f"reset-{email}"
        self.resets[token] = email
        return token

    async def confirm_reset(self, token: str, new_password: str) -> User:
        self._check()
        email = self.resets.pop(token, None)
        if email is None:
            raise ValidationError("Reset token is invalid or expired.")
        user = self.users[email][0]
        self.users[email] = (user, new_password)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        for user, _ in self.users.values():
            if user.id == user_id:
                return user
        return None
