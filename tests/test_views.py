"""
View derivation: kanban columns, matrix quadrants, calendar cells and analytics.
All of these are pure and recomputed from the canonical list.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from taskdeck.domain.common.errors import NotFoundError, ValidationError
from taskdeck.domain.tasks.models import Category, Quadrant, TaskStatus
from taskdeck.domain.tasks.views import (
    calendar_buckets,
    calendar_month,
    category_aggregates,
    completion_rate,
    day_cell,
    kanban_buckets,
    most_productive_day,
    overdue_count,
    plan_kanban_move,
    quadrant_buckets,
    quadrant_changes,
    splice,
    week_over_week,
    weekly_completion_series,
)

from tests.fakes import T0, make_task

DONE = TaskStatus.COMPLETED


# ---- kanban / ordering ----

def test_kanban_buckets_split_by_status_sorted_by_order():
    tasks = [make_task("c", 2), make_task("a", 0), make_task("b", 1, status=DONE)]
    cols = kanban_buckets(tasks)
    assert [t.id for t in cols.pending] == ["a", "c"]
    assert [t.id for t in cols.completed] == ["b"]
    assert cols.column(DONE) is cols.completed


def test_splice_moves_first_to_third_and_renumbers():
    tasks = [make_task(f"t{i}", i) for i in range(5)]
    result = splice(tasks, 0, 2)
    assert [t.id for t in result] == ["t1", "t2", "t0", "t3", "t4"]
    assert [t.order for t in result] == [0, 1, 2, 3, 4]


def test_splice_rejects_out_of_range():
    tasks = [make_task("a", 0)]
    with pytest.raises(ValidationError):
        splice(tasks, 0, 3)
    with pytest.raises(ValidationError):
        splice(tasks, -1, 0)


def test_plan_kanban_move_maps_column_index_to_global_index():
    tasks = [
        make_task("p0", 0),
        make_task("c0", 1, status=DONE),
        make_task("p1", 2),
        make_task("c1", 3, status=DONE),
    ]
    # move p0 to the end of the completed column
    plan = plan_kanban_move(tasks, tasks, TaskStatus.PENDING, 0, DONE, 2)
    assert plan.task_id == "p0"
    assert plan.status_changes is True
    assert plan.source_index == 0
    # remaining ids: c0 p1 c1 -> after c1
    assert plan.destination_index == 3


def test_plan_kanban_move_inside_column_lands_before_target():
    tasks = [make_task("a", 0), make_task("b", 1), make_task("c", 2)]
    plan = plan_kanban_move(tasks, tasks, TaskStatus.PENDING, 2, TaskStatus.PENDING, 0)
    assert (plan.source_index, plan.destination_index, plan.status_changes) == (2, 0, False)


def test_plan_kanban_move_unknown_source_index():
    tasks = [make_task("a", 0)]
    with pytest.raises(NotFoundError):
        plan_kanban_move(tasks, tasks, DONE, 0, TaskStatus.PENDING, 0)


# ---- eisenhower ----

def test_quadrant_buckets_skip_completed_tasks():
    tasks = [
        make_task("ui", 0, is_urgent=True, is_important=True),
        make_task("nn", 1),
        make_task("done", 2, status=DONE, is_urgent=True, is_important=True),
    ]
    buckets = quadrant_buckets(tasks)
    assert [t.id for t in buckets[Quadrant.URGENT_IMPORTANT]] == ["ui"]
    assert [t.id for t in buckets[Quadrant.NOT_URGENT_NOT_IMPORTANT]] == ["nn"]
    assert buckets[Quadrant.URGENT_NOT_IMPORTANT] == []


def test_quadrant_changes_only_lists_differing_flags():
    task = make_task("a", 0, is_urgent=True, is_important=False)
    assert quadrant_changes(task, Quadrant.URGENT_IMPORTANT) == {"is_important": True}
    assert quadrant_changes(task, Quadrant.URGENT_NOT_IMPORTANT) == {}


# ---- calendar ----

def test_calendar_cell_shows_three_and_counts_the_rest():
    due = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    tasks = [make_task(f"t{i}", i, due_date=due) for i in range(5)]
    cell = day_cell(calendar_buckets(tasks), date(2026, 3, 10))
    assert [t.id for t in cell.tasks] == ["t0", "t1", "t2"]
    assert cell.more == 2
    assert cell.total == 5


def test_calendar_buckets_use_local_date():
    # 23:30 UTC is already the next day in Helsinki
    from zoneinfo import ZoneInfo

    due = datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc)
    buckets = calendar_buckets([make_task("a", 0, due_date=due)], ZoneInfo("Europe/Helsinki"))
    assert list(buckets) == ["2026-03-11"]


def test_calendar_month_weeks_start_on_sunday_and_blank_other_months():
    weeks = calendar_month([], 2026, 3)
    # March 1st 2026 is a Sunday
    assert weeks[0][0] is not None and weeks[0][0].day == date(2026, 3, 1)
    assert all(len(w) == 7 for w in weeks)
    assert weeks[-1][-1] is None


# ---- analytics ----

def test_category_aggregates_sorted_descending():
    tasks = [make_task(f"p{i}", i) for i in range(5)] + [
        make_task("c1", 5, status=DONE, category=Category.WORK),
        make_task("c2", 6, status=DONE, category=Category.PERSONAL),
        make_task("c3", 7, status=DONE, category=Category.WORK),
    ]
    rows = category_aggregates(tasks)
    assert [(r.category, r.count) for r in rows] == [(Category.WORK, 2), (Category.PERSONAL, 1)]
    assert [r.percent for r in rows] == [67, 33]


def test_category_aggregates_without_completed_tasks():
    assert category_aggregates([make_task(f"p{i}", i) for i in range(3)]) == []
    assert category_aggregates([]) == []


def test_category_percentages_sum_to_about_100():
    categories = [Category.WORK, Category.PERSONAL, Category.HEALTH]
    tasks = [make_task(f"c{i}", i, status=DONE, category=categories[i % 3]) for i in range(7)]
    tasks.append(make_task("p", 7))
    total = sum(r.percent for r in category_aggregates(tasks))
    assert 99 <= total <= 101


def test_weekly_series_and_most_productive_day():
    monday = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
    tasks = [
        make_task("a", 0, status=DONE, completed_at=monday),
        make_task("b", 1, status=DONE, completed_at=monday + timedelta(days=2)),
        make_task("c", 2, status=DONE, completed_at=monday + timedelta(days=2, hours=3)),
    ]
    series = weekly_completion_series(tasks, T0.date())
    assert [d.count for d in series] == [1, 0, 2, 0, 0, 0, 0]
    assert most_productive_day(series).label == "Wed"


def test_most_productive_day_none_without_completions():
    assert most_productive_day(weekly_completion_series([], T0.date())) is None


def test_week_over_week_percent():
    this_week = T0
    last_week = T0 - timedelta(days=7)
    tasks = [
        make_task("a", 0, status=DONE, completed_at=this_week),
        make_task("b", 1, status=DONE, completed_at=this_week),
        make_task("c", 2, status=DONE, completed_at=this_week),
        make_task("d", 3, status=DONE, completed_at=last_week),
        make_task("e", 4, status=DONE, completed_at=last_week),
    ]
    wow = week_over_week(tasks, T0.date())
    assert (wow.this_week, wow.last_week, wow.delta, wow.percent) == (3, 2, 1, 50)


def test_week_over_week_without_last_week():
    wow = week_over_week([make_task("a", 0, status=DONE, completed_at=T0)], T0.date())
    assert wow.percent == 100


def test_week_over_week_both_zero_is_zero_percent():
    old = make_task("old", 0, status=DONE, completed_at=T0 - timedelta(days=30))
    wow = week_over_week([old, make_task("open", 1)], T0.date())
    assert (wow.this_week, wow.last_week, wow.delta, wow.percent) == (0, 0, 0, 0)


def test_overdue_and_completion_rate():
    tasks = [
        make_task("late", 0, due_date=T0 - timedelta(hours=1)),
        make_task("soon", 1, due_date=T0 + timedelta(hours=1)),
        make_task("done-late", 2, status=DONE, due_date=T0 - timedelta(days=1)),
        make_task("free", 3),
    ]
    assert overdue_count(tasks, T0) == 1
    assert completion_rate(tasks) == 25
    assert completion_rate([]) == 0
