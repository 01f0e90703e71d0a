"""
Focus-session state machine.

    idle -> running -> {paused <-> running} -> completed -> idle
    running | paused | completed -> idle   (stop)
    any -> running                          (reset, restarts immediately)

Every transition is a pure function returning a new FocusSession. The
countdown is driven from outside by calling `tick` once per elapsed second.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from taskdeck.domain.common.errors import PreconditionError, ValidationError
from taskdeck.domain.focus.models import (
    LONG_BREAK_EVERY,
    FocusSession,
    FocusState,
    TickOutcome,
    TimerMode,
)

MAX_MINUTES = 240


def start(
    now: datetime,
    duration_minutes: int,
    task_id: Optional[str] = None,
    mode: TimerMode = TimerMode.FOCUS,
) -> FocusSession:
    """A fresh running session. Whatever ran before is simply replaced."""
    if not 1 <= duration_minutes <= MAX_MINUTES:
        raise ValidationError(f"Duration must be between 1 and {MAX_MINUTES} minutes.")
    return FocusSession(
        state=FocusState.RUNNING,
        duration_minutes=duration_minutes,
        remaining_seconds=duration_minutes * 60,
        started_at=now,
        task_id=task_id,
        mode=mode,
    )


def pause(session: FocusSession) -> FocusSession:
    if session.state != FocusState.RUNNING:
        raise PreconditionError("Timer is not running.")
    return replace(session, state=FocusState.PAUSED)


def resume(session: FocusSession) -> FocusSession:
    if session.state != FocusState.PAUSED:
        raise PreconditionError("Timer is not paused.")
    return replace(session, state=FocusState.RUNNING)


def reset(session: FocusSession, now: datetime) -> FocusSession:
    if session.duration_minutes <= 0:
        raise PreconditionError("No timer to reset.")
    return replace(
        session,
        state=FocusState.RUNNING,
        remaining_seconds=session.total_seconds,
        started_at=now,
    )


def stop(session: FocusSession) -> FocusSession:
    if session.state == FocusState.IDLE:
        raise PreconditionError("No timer is running.")
    return FocusSession.idle()


def tick(session: FocusSession, elapsed_seconds: int = 1) -> TickOutcome:
    """
    Count down while running. The transition to completed happens on the
    tick that reaches zero and never again; remaining is clamped at 0.
    """
    if session.state != FocusState.RUNNING or elapsed_seconds <= 0:
        return TickOutcome(session=session)
    remaining = max(0, session.remaining_seconds - elapsed_seconds)
    if remaining == 0:
        return TickOutcome(
            session=replace(session, state=FocusState.COMPLETED, remaining_seconds=0),
            completed=True,
        )
    return TickOutcome(session=replace(session, remaining_seconds=remaining))


def next_mode(finished: TimerMode, completed_focus_count: int) -> TimerMode:
    """Mode that follows `finished`; count includes the session just finished."""
    if finished != TimerMode.FOCUS:
        return TimerMode.FOCUS
    if completed_focus_count > 0 and completed_focus_count % LONG_BREAK_EVERY == 0:
        return TimerMode.LONG_BREAK
    return TimerMode.SHORT_BREAK


def format_remaining(seconds: int) -> str:
    mins, secs = divmod(max(0, seconds), 60)
    return f"{mins:02d}:{secs:02d}"
