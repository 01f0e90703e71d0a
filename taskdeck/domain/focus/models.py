from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional


class FocusState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class TimerMode(str, Enum):
    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def label(self) -> str:
        return {
            TimerMode.FOCUS: "Focus",
            TimerMode.SHORT_BREAK: "Short Break",
            TimerMode.LONG_BREAK: "Long Break",
        }[self]


DEFAULT_DURATIONS: Dict[TimerMode, int] = {
    TimerMode.FOCUS: 25,
    TimerMode.SHORT_BREAK: 5,
    TimerMode.LONG_BREAK: 15,
}

LONG_BREAK_EVERY = 4


@dataclass(frozen=True)
class FocusSession:
    state: FocusState
    duration_minutes: int = 0
    remaining_seconds: int = 0
    started_at: Optional[datetime] = None
    task_id: Optional[str] = None
    mode: TimerMode = TimerMode.FOCUS

    @classmethod
    def idle(cls) -> "FocusSession":
        return cls(state=FocusState.IDLE)

    @property
    def is_active(self) -> bool:
        return self.state in (FocusState.RUNNING, FocusState.PAUSED)

    @property
    def total_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def progress_percent(self) -> int:
        if self.total_seconds <= 0:
            return 0
        return round((self.total_seconds - self.remaining_seconds) * 100 / self.total_seconds)


@dataclass(frozen=True)
class TickOutcome:
    session: FocusSession
    completed: bool = False


@dataclass(frozen=True)
class FocusCompletion:
    mode: TimerMode
    task_id: Optional[str]
    duration_minutes: int
    next_mode: TimerMode
    completed_at: datetime


@dataclass(frozen=True)
class FocusLogEntry:
    entry_id: str
    owner_id: str
    task_id: Optional[str]
    minutes: int
    completed_at: datetime
