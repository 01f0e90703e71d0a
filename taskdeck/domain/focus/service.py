from __future__ import annotations

import logging
from typing import Dict, Optional

from taskdeck.domain.common.errors import DomainError, RemoteError
from taskdeck.domain.common.models import OperationResult
from taskdeck.domain.common.ports import Clock, IdGenerator
from taskdeck.domain.focus import machine
from taskdeck.domain.focus.models import (
    DEFAULT_DURATIONS,
    FocusCompletion,
    FocusLogEntry,
    FocusSession,
    TimerMode,
)
from taskdeck.domain.focus.ports import FocusLogRepository

logger = logging.getLogger(__name__)


class FocusService:
    """
    One user's focus timer plus the Pomodoro cycle around it.

    Holds the current FocusSession and hands every transition to the pure
    state machine. Completed focus sessions are written to the focus log.
    """

    def __init__(
        self,
        clock: Clock,
        ids: IdGenerator,
        log: FocusLogRepository,
        owner_id: str,
        durations: Optional[Dict[TimerMode, int]] = None,
    ) -> None:
        self._clock = clock
        self._ids = ids
        self._log = log
        self._owner_id = owner_id
        self._durations = dict(DEFAULT_DURATIONS)
        if durations:
            self._durations.update(durations)
        self.session = FocusSession.idle()
        self.completed_focus_count = 0
        self.upcoming_mode = TimerMode.FOCUS

    def duration_for(self, mode: TimerMode) -> int:
        return self._durations[mode]

    def set_duration(self, mode: TimerMode, minutes: int) -> OperationResult:
        if not 1 <= minutes <= machine.MAX_MINUTES:
            return OperationResult.fail(f"Duration must be between 1 and {machine.MAX_MINUTES} minutes.")
        self._durations[mode] = minutes
        return OperationResult.ok()

    def start(
        self,
        task_id: Optional[str] = None,
        minutes: Optional[int] = None,
        mode: Optional[TimerMode] = None,
    ) -> OperationResult:
        mode = mode or self.upcoming_mode
        duration = minutes if minutes is not None else self._durations[mode]
        try:
            session = machine.start(self._clock.now(), duration, task_id=task_id, mode=mode)
        except DomainError as e:
            return OperationResult.fail(str(e))
        if self.session.is_active:
            logger.info("Replacing active focus session owner=%s", self._owner_id)
        self.session = session
        return OperationResult.ok()

    def pause(self) -> OperationResult:
        return self._apply(machine.pause)

    def resume(self) -> OperationResult:
        return self._apply(machine.resume)

    def reset(self) -> OperationResult:
        if self.session.duration_minutes <= 0:
            return self.start()
        return self._apply(lambda s: machine.reset(s, self._clock.now()))

    def stop(self) -> OperationResult:
        return self._apply(machine.stop)

    async def tick(self, elapsed_seconds: int = 1) -> Optional[FocusCompletion]:
        outcome = machine.tick(self.session, elapsed_seconds)
        self.session = outcome.session
        if not outcome.completed:
            return None

        finished = self.session
        now = self._clock.now()
        if finished.mode == TimerMode.FOCUS:
            self.completed_focus_count += 1
            await self._record(finished, now)
        self.upcoming_mode = machine.next_mode(finished.mode, self.completed_focus_count)
        return FocusCompletion(
            mode=finished.mode,
            task_id=finished.task_id,
            duration_minutes=finished.duration_minutes,
            next_mode=self.upcoming_mode,
            completed_at=now,
        )

    def _apply(self, transition) -> OperationResult:
        try:
            self.session = transition(self.session)
        except DomainError as e:
            return OperationResult.fail(str(e))
        return OperationResult.ok()

    async def _record(self, finished: FocusSession, now) -> None:
        entry = FocusLogEntry(
            entry_id=self._ids.new_id(),
            owner_id=self._owner_id,
            task_id=finished.task_id,
            minutes=finished.duration_minutes,
            completed_at=now,
        )
        try:
            await self._log.add_entry(entry)
        except RemoteError as e:
            # the timer already completed; a lost log row only affects stats
            logger.warning("Recording focus session failed owner=%s: %s", self._owner_id, e, exc_info=True)
