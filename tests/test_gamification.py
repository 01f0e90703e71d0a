"""
Gamification: streaks, achievements, levels and daily challenges.
"""
import asyncio
from datetime import date, datetime, timedelta, timezone

from taskdeck.domain.focus.models import FocusLogEntry
from taskdeck.domain.gamification.rules import (
    achievements,
    completion_days,
    current_streak,
    daily_challenges,
    efficiency,
    has_full_weekend,
    level_for,
    unlocked_points,
)
from taskdeck.domain.gamification.service import GamificationService
from taskdeck.domain.tasks.models import Priority, TaskStatus
from taskdeck.domain.tasks.views import completion_rate

from tests.fakes import T0, FixedClock, InMemoryFocusLog, make_task

DONE = TaskStatus.COMPLETED
TODAY = T0.date()


def test_streak_counts_back_from_today():
    days = {TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=2), TODAY - timedelta(days=4)}
    assert current_streak(days, TODAY) == 3


def test_streak_ending_yesterday_still_counts():
    days = {TODAY - timedelta(days=1), TODAY - timedelta(days=2)}
    assert current_streak(days, TODAY) == 2
    assert current_streak({TODAY - timedelta(days=2)}, TODAY) == 0


def test_full_weekend():
    saturday = date(2026, 3, 7)
    assert has_full_weekend({saturday, saturday + timedelta(days=1)})
    assert not has_full_weekend({saturday, saturday + timedelta(days=2)})


def test_completion_days_ignore_pending():
    tasks = [make_task("a", 0, status=DONE, completed_at=T0), make_task("b", 1)]
    assert completion_days(tasks) == {TODAY}
    assert efficiency(tasks) == 50
    assert efficiency(tasks) == completion_rate(tasks)
    assert efficiency([]) == 0


def test_achievements_progress_is_capped():
    tasks = [make_task(f"t{i}", i, status=DONE, priority=Priority.HIGH) for i in range(12)]
    items = {a.key: a for a in achievements(tasks, focus_sessions=2, streak=1, days={TODAY})}
    assert items["getting_started"].unlocked
    assert items["task_master"].progress == 10 and items["task_master"].unlocked
    assert items["priority_manager"].unlocked
    assert items["focused_mind"].progress == 2 and not items["focused_mind"].unlocked
    assert unlocked_points(items.values()) == 10 + 25 + 50


def test_levels_are_hundred_points_each():
    lvl = level_for(235)
    assert (lvl.level, lvl.xp, lvl.xp_to_next) == (3, 35, 65)
    assert level_for(0).level == 1


def test_daily_challenges():
    now = T0
    tasks = [
        make_task("a", 0, status=DONE, completed_at=now),
        make_task("b", 1, status=DONE, completed_at=now, due_date=now - timedelta(days=2)),
        make_task("c", 2, created_at=now, due_date=now + timedelta(days=3)),
        make_task("d", 3, created_at=now, due_date=now + timedelta(hours=1)),
    ]
    challenges = {c.key: c for c in daily_challenges(tasks, focus_today=1, now=now, tz=timezone.utc)}
    assert challenges["complete_three"].progress == 2
    assert challenges["focus_session"].completed
    assert challenges["clear_backlog"].progress == 1
    # "d" is due today, so it does not count as planning ahead
    assert challenges["plan_ahead"].progress == 1
    assert challenges["plan_ahead"].expires_at == datetime(2026, 3, 5, tzinfo=timezone.utc)


def test_report_announces_new_unlocks_once():
    log = InMemoryFocusLog()
    svc = GamificationService(log, FixedClock())

    first = asyncio.run(svc.report("u1", [make_task("a", 0)]))
    assert first.newly_unlocked == []

    done = [make_task("a", 0, status=DONE, completed_at=T0)]
    second = asyncio.run(svc.report("u1", done))
    assert [a.key for a in second.newly_unlocked] == ["getting_started"]
    assert second.streak == 1
    assert second.level.points == 10

    third = asyncio.run(svc.report("u1", done))
    assert third.newly_unlocked == []


def test_report_counts_focus_sessions_today():
    log = InMemoryFocusLog()
    asyncio.run(log.add_entry(FocusLogEntry("e1", "u1", None, 25, T0 - timedelta(days=1))))
    asyncio.run(log.add_entry(FocusLogEntry("e2", "u1", None, 25, T0)))
    report = asyncio.run(GamificationService(log, FixedClock()).report("u1", []))
    focus = {c.key: c for c in report.challenges}["focus_session"]
    assert focus.completed
    focused_mind = {a.key: a for a in report.achievements}["focused_mind"]
    assert focused_mind.progress == 2
