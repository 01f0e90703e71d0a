from __future__ import annotations

import logging
from typing import Dict, Sequence, Set

from taskdeck.domain.common.errors import RemoteError
from taskdeck.domain.common.ports import Clock
from taskdeck.domain.focus.ports import FocusLogRepository
from taskdeck.domain.gamification.models import ProgressReport
from taskdeck.domain.gamification.rules import (
    achievements,
    completion_days,
    current_streak,
    daily_challenges,
    efficiency,
    level_for,
    unlocked_points,
)
from taskdeck.domain.tasks.models import Task

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Derives the progress report from the task list and the focus log.
    Remembers which achievements each owner has already seen so new
    unlocks can be announced once.
    """

    def __init__(self, focus_log: FocusLogRepository, clock: Clock) -> None:
        self._focus_log = focus_log
        self._clock = clock
        self._seen: Dict[str, Set[str]] = {}

    async def report(self, owner_id: str, tasks: Sequence[Task]) -> ProgressReport:
        now = self._clock.now()
        tz = self._clock.tz
        start_of_day = now.astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)

        try:
            focus_all = await self._focus_log.list_completed_at(owner_id)
        except RemoteError as e:
            logger.warning("Reading focus log failed owner=%s: %s", owner_id, e, exc_info=True)
            focus_all = []
        focus_today = sum(1 for ts in focus_all if ts >= start_of_day)

        days = completion_days(tasks, tz)
        streak = current_streak(days, start_of_day.date())
        items = achievements(tasks, len(focus_all), streak, days)

        unlocked = {a.key for a in items if a.unlocked}
        seen = self._seen.get(owner_id)
        # first report only establishes the baseline
        newly = [a for a in items if a.unlocked and seen is not None and a.key not in seen]
        self._seen[owner_id] = unlocked

        return ProgressReport(
            streak=streak,
            efficiency=efficiency(tasks),
            achievements=items,
            level=level_for(unlocked_points(items)),
            challenges=daily_challenges(tasks, focus_today, now, tz),
            newly_unlocked=newly,
        )
