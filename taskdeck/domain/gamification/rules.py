"""
Gamification rules: streaks, achievements, levels and daily challenges.
All functions are pure; "today" is always a local date passed in.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, List, Optional, Sequence, Set

from taskdeck.domain.common.time import local_date, next_midnight
from taskdeck.domain.gamification.models import (
    Achievement,
    AchievementCategory,
    DailyChallenge,
    LevelInfo,
    Rarity,
)
from taskdeck.domain.tasks.models import Priority, Task, TaskStatus
from taskdeck.domain.tasks.views import completion_rate

POINTS_PER_LEVEL = 100


def completion_days(tasks: Iterable[Task], tz: Optional[tzinfo] = None) -> Set[date]:
    return {
        local_date(t.completed_at, tz)
        for t in tasks
        if t.status == TaskStatus.COMPLETED and t.completed_at is not None
    }


def current_streak(days: Set[date], today: date) -> int:
    """
    Consecutive days with at least one completion, ending today. A streak that
    ended yesterday still counts until today is over.
    """
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def has_full_weekend(days: Set[date]) -> bool:
    # weekday 5 = Saturday
    return any(d.weekday() == 5 and d + timedelta(days=1) in days for d in days)


def efficiency(tasks: Sequence[Task]) -> int:
    return completion_rate(tasks)


def achievements(tasks: Sequence[Task], focus_sessions: int, streak: int, days: Set[date]) -> List[Achievement]:
    completed = [t for t in tasks if t.status == TaskStatus.COMPLETED]
    high = sum(1 for t in completed if t.priority == Priority.HIGH)

    def capped(value: int, cap: int) -> int:
        return min(value, cap)

    return [
        Achievement("getting_started", "Getting Started", "Complete your first task",
                    capped(len(completed), 1), 1, AchievementCategory.TASKS, Rarity.COMMON, 10),
        Achievement("focused_mind", "Focused Mind", "Complete 5 Pomodoro sessions",
                    capped(focus_sessions, 5), 5, AchievementCategory.FOCUS, Rarity.UNCOMMON, 25),
        Achievement("task_master", "Task Master", "Complete 10 tasks",
                    capped(len(completed), 10), 10, AchievementCategory.TASKS, Rarity.UNCOMMON, 25),
        Achievement("consistent_effort", "Consistent Effort", "Complete tasks on 5 consecutive days",
                    capped(streak, 5), 5, AchievementCategory.HABITS, Rarity.UNCOMMON, 30),
        Achievement("priority_manager", "Priority Manager", "Complete 5 high priority tasks",
                    capped(high, 5), 5, AchievementCategory.TASKS, Rarity.RARE, 50),
        Achievement("weekend_warrior", "Weekend Warrior", "Complete tasks on both Saturday and Sunday",
                    1 if has_full_weekend(days) else 0, 1, AchievementCategory.HABITS, Rarity.RARE, 50),
        Achievement("productivity_legend", "Productivity Legend", "Complete tasks 7 days in a row",
                    capped(streak, 7), 7, AchievementCategory.SPECIAL, Rarity.LEGENDARY, 100),
    ]


def level_for(points: int) -> LevelInfo:
    points = max(0, points)
    xp = points % POINTS_PER_LEVEL
    return LevelInfo(
        points=points,
        level=points // POINTS_PER_LEVEL + 1,
        xp=xp,
        xp_to_next=POINTS_PER_LEVEL - xp,
    )


def unlocked_points(items: Iterable[Achievement]) -> int:
    return sum(a.points for a in items if a.unlocked)


def daily_challenges(
    tasks: Sequence[Task],
    focus_today: int,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> List[DailyChallenge]:
    if tz is not None:
        now = now.astimezone(tz)
    today = now.date()
    expires = next_midnight(now)
    start_of_today = expires - timedelta(days=1)

    def done_today(t: Task) -> bool:
        return (
            t.status == TaskStatus.COMPLETED
            and t.completed_at is not None
            and local_date(t.completed_at, tz) == today
        )

    completed_today = [t for t in tasks if done_today(t)]
    overdue_cleared = [t for t in completed_today if t.due_date is not None and t.due_date < start_of_today]
    planned = [
        t for t in tasks
        if local_date(t.created_at, tz) == today and t.due_date is not None and t.due_date > expires
    ]

    return [
        DailyChallenge("complete_three", "Complete 3 tasks today", "Finish any 3 tasks on your list today",
                       min(len(completed_today), 3), 3, 50, expires),
        DailyChallenge("focus_session", "Focus for 25 minutes", "Complete a Pomodoro session",
                       min(focus_today, 1), 1, 30, expires),
        DailyChallenge("clear_backlog", "Clear your backlog", "Complete 2 overdue tasks",
                       min(len(overdue_cleared), 2), 2, 40, expires),
        DailyChallenge("plan_ahead", "Plan ahead", "Create 2 new tasks for the future",
                       min(len(planned), 2), 2, 25, expires),
    ]
