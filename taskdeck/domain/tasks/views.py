"""
View derivation: pure functions that turn a (usually already filtered) task
list into the groupings each view mode renders.

Nothing here keeps state between calls; every view is recomputed from the
canonical task list.
"""
from __future__ import annotations

import calendar as _calendar
from collections import Counter
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence

from taskdeck.domain.common.errors import NotFoundError, ValidationError
from taskdeck.domain.common.time import date_key, local_date, week_start
from taskdeck.domain.tasks.models import Category, Quadrant, Task, TaskStatus

CALENDAR_CELL_LIMIT = 3
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def by_order(tasks: Iterable[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: t.order)


# ---- kanban ----


@dataclass(frozen=True)
class KanbanColumns:
    pending: List[Task]
    completed: List[Task]

    def column(self, status: TaskStatus) -> List[Task]:
        return self.completed if status == TaskStatus.COMPLETED else self.pending


def kanban_buckets(tasks: Iterable[Task]) -> KanbanColumns:
    ordered = by_order(tasks)
    return KanbanColumns(
        pending=[t for t in ordered if t.status == TaskStatus.PENDING],
        completed=[t for t in ordered if t.status == TaskStatus.COMPLETED],
    )


def splice(tasks: Sequence[Task], source_index: int, destination_index: int) -> List[Task]:
    """
    Remove the item at source_index, insert it at destination_index and
    renumber `order` 0..n-1 to match the new positions.
    """
    n = len(tasks)
    if not 0 <= source_index < n:
        raise ValidationError(f"Source index {source_index} out of range.")
    if not 0 <= destination_index < n:
        raise ValidationError(f"Destination index {destination_index} out of range.")
    items = list(tasks)
    moved = items.pop(source_index)
    items.insert(destination_index, moved)
    return renumber(items)


def renumber(tasks: Sequence[Task]) -> List[Task]:
    return [t if t.order == i else replace(t, order=i) for i, t in enumerate(tasks)]


@dataclass(frozen=True)
class KanbanMove:
    task_id: str
    source_index: int
    destination_index: int
    status_changes: bool


def plan_kanban_move(
    all_tasks: Sequence[Task],
    visible_tasks: Sequence[Task],
    source_column: TaskStatus,
    source_index: int,
    destination_column: TaskStatus,
    destination_index: int,
) -> KanbanMove:
    """
    Translate a column-relative move on the visible board into a splice over
    the whole collection. The moved task lands before whatever visible task
    currently sits at destination_index, or after the last visible task of the
    destination column when the index is past its end.
    """
    columns = kanban_buckets(visible_tasks)
    source = columns.column(source_column)
    if not 0 <= source_index < len(source):
        raise NotFoundError(f"No task at {source_column.value}[{source_index}].")
    moved = source[source_index]

    ordered = by_order(all_tasks)
    global_ids = [t.id for t in ordered]
    src_global = global_ids.index(moved.id)
    remaining = [tid for tid in global_ids if tid != moved.id]

    dest = [t for t in columns.column(destination_column) if t.id != moved.id]
    if destination_index < 0:
        raise ValidationError(f"Destination index {destination_index} out of range.")
    if destination_index < len(dest):
        dst_global = remaining.index(dest[destination_index].id)
    elif dest:
        dst_global = remaining.index(dest[-1].id) + 1
    else:
        dst_global = len(remaining)

    return KanbanMove(
        task_id=moved.id,
        source_index=src_global,
        destination_index=dst_global,
        status_changes=source_column != destination_column,
    )


# ---- eisenhower ----


def quadrant_buckets(tasks: Iterable[Task]) -> Dict[Quadrant, List[Task]]:
    buckets: Dict[Quadrant, List[Task]] = {q: [] for q in Quadrant}
    for t in tasks:
        if t.status == TaskStatus.COMPLETED:
            continue
        buckets[t.quadrant].append(t)
    return buckets


def quadrant_changes(task: Task, target: Quadrant) -> Dict[str, bool]:
    """Fields to write when moving `task` into `target`; empty when already there."""
    is_urgent, is_important = target.flags
    changes: Dict[str, bool] = {}
    if task.is_urgent != is_urgent:
        changes["is_urgent"] = is_urgent
    if task.is_important != is_important:
        changes["is_important"] = is_important
    return changes


# ---- calendar ----


@dataclass(frozen=True)
class DayCell:
    day: date
    key: str
    tasks: List[Task]
    more: int

    @property
    def total(self) -> int:
        return len(self.tasks) + self.more


def calendar_buckets(tasks: Iterable[Task], tz: Optional[tzinfo] = None) -> Dict[str, List[Task]]:
    buckets: Dict[str, List[Task]] = {}
    for t in by_order(tasks):
        if t.due_date is None:
            continue
        buckets.setdefault(date_key(local_date(t.due_date, tz)), []).append(t)
    return buckets


def day_cell(
    buckets: Dict[str, List[Task]],
    day: date,
    limit: int = CALENDAR_CELL_LIMIT,
) -> DayCell:
    key = date_key(day)
    items = buckets.get(key, [])
    return DayCell(day=day, key=key, tasks=items[:limit], more=max(0, len(items) - limit))


def calendar_month(
    tasks: Iterable[Task],
    year: int,
    month: int,
    tz: Optional[tzinfo] = None,
) -> List[List[Optional[DayCell]]]:
    """Weeks of the month, Sunday first; days outside the month are None."""
    buckets = calendar_buckets(tasks, tz)
    weeks: List[List[Optional[DayCell]]] = []
    for week in _calendar.Calendar(firstweekday=6).monthdatescalendar(year, month):
        weeks.append([day_cell(buckets, d) if d.month == month else None for d in week])
    return weeks


# ---- analytics ----


@dataclass(frozen=True)
class DayCount:
    day: date
    label: str
    count: int


@dataclass(frozen=True)
class CategoryShare:
    category: Category
    count: int
    percent: int


@dataclass(frozen=True)
class WeekDelta:
    this_week: int
    last_week: int
    delta: int
    percent: int


def _completed_days(tasks: Iterable[Task], tz: Optional[tzinfo]) -> List[date]:
    return [
        local_date(t.completed_at, tz)
        for t in tasks
        if t.status == TaskStatus.COMPLETED and t.completed_at is not None
    ]


def weekly_completion_series(
    tasks: Iterable[Task],
    today: date,
    tz: Optional[tzinfo] = None,
) -> List[DayCount]:
    start = week_start(today)
    counts = Counter(_completed_days(tasks, tz))
    return [
        DayCount(day=start + timedelta(days=i), label=WEEKDAY_LABELS[i], count=counts[start + timedelta(days=i)])
        for i in range(7)
    ]


def most_productive_day(series: Sequence[DayCount]) -> Optional[DayCount]:
    best: Optional[DayCount] = None
    for d in series:
        if d.count > 0 and (best is None or d.count > best.count):
            best = d
    return best


def category_aggregates(tasks: Iterable[Task]) -> List[CategoryShare]:
    counts: Dict[Category, int] = {}
    for t in tasks:
        if t.status == TaskStatus.COMPLETED:
            counts[t.category] = counts.get(t.category, 0) + 1
    total = sum(counts.values())
    rows = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [
        CategoryShare(category=cat, count=n, percent=round(n * 100 / total) if total else 0)
        for cat, n in rows
    ]


def overdue_count(tasks: Iterable[Task], now: datetime) -> int:
    return sum(
        1
        for t in tasks
        if t.status == TaskStatus.PENDING and t.due_date is not None and t.due_date < now
    )


def week_over_week(tasks: Iterable[Task], today: date, tz: Optional[tzinfo] = None) -> WeekDelta:
    start = week_start(today)
    end = start + timedelta(days=6)
    prev_start = start - timedelta(days=7)
    days = _completed_days(tasks, tz)
    this_week = sum(1 for d in days if start <= d <= end)
    last_week = sum(1 for d in days if prev_start <= d < start)
    delta = this_week - last_week
    if last_week:
        percent = round(delta / last_week * 100)
    else:
        percent = 100 if this_week else 0
    return WeekDelta(this_week=this_week, last_week=last_week, delta=delta, percent=percent)


def completion_rate(tasks: Sequence[Task]) -> int:
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return round(done * 100 / len(tasks))
