from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from taskdeck.domain.auth.models import User
from taskdeck.domain.common.ports import Clock, IdGenerator
from taskdeck.domain.focus.models import TimerMode
from taskdeck.domain.focus.ports import FocusLogRepository
from taskdeck.domain.focus.service import FocusService
from taskdeck.domain.tasks.models import FilterCriteria, TaskDraft, ViewType
from taskdeck.domain.tasks.ports import TaskRepository
from taskdeck.domain.tasks.service import TaskService
from taskdeck.infra.scheduler.ticker import FocusTicker

logger = logging.getLogger(__name__)


@dataclass
class UserSession:
    """Everything one signed-in chat user is looking at right now."""
    user: User
    tasks: TaskService
    focus: FocusService
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    view: ViewType = ViewType.LIST
    month: Optional[date] = None
    # accepted entries become None so button indices stay valid
    suggestions: List[Optional[TaskDraft]] = field(default_factory=list)


class SessionRegistry:
    """
    Per chat-user session state. Sessions are created on sign-in (tasks are
    loaded once) and dropped on sign-out together with any running timer.
    """

    def __init__(
        self,
        repo: TaskRepository,
        focus_log: FocusLogRepository,
        clock: Clock,
        ids: IdGenerator,
        ticker: FocusTicker,
        focus_default_minutes: int = 25,
    ) -> None:
        self._repo = repo
        self._focus_log = focus_log
        self._clock = clock
        self._ids = ids
        self._ticker = ticker
        self._focus_minutes = focus_default_minutes
        self._sessions: Dict[int, UserSession] = {}

    def get(self, chat_user_id: int) -> Optional[UserSession]:
        return self._sessions.get(chat_user_id)

    async def open(self, chat_user_id: int, user: User) -> UserSession:
        current = self._sessions.get(chat_user_id)
        if current is not None and current.user.id == user.id:
            return current
        self.close(chat_user_id)

        tasks = TaskService(self._repo, self._clock, self._ids, owner_id=user.id)
        loaded = await tasks.load()
        if not loaded.success:
            logger.warning("Opening session with empty task list user_id=%s", user.id)
        focus = FocusService(
            self._clock,
            self._ids,
            self._focus_log,
            owner_id=user.id,
            durations={TimerMode.FOCUS: self._focus_minutes},
        )
        session = UserSession(user=user, tasks=tasks, focus=focus)
        self._sessions[chat_user_id] = session
        return session

    def close(self, chat_user_id: int) -> None:
        self._ticker.cancel(chat_user_id)
        self._sessions.pop(chat_user_id, None)
