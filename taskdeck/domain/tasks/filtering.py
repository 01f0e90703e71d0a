"""
Filter engine: (tasks, criteria) -> tasks.

Pure and order preserving; a task must pass every active filter.
"""
from __future__ import annotations

from typing import Iterable, List

from taskdeck.domain.tasks.models import ALL, FilterCriteria, Task


def matches_search(task: Task, search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    return needle in task.title.lower() or needle in (task.description or "").lower()


def matches(task: Task, criteria: FilterCriteria) -> bool:
    if criteria.status != ALL and task.status != criteria.status:
        return False
    if criteria.priority != ALL and task.priority != criteria.priority:
        return False
    if criteria.category != ALL and task.category != criteria.category:
        return False
    return matches_search(task, criteria.search)


def filter_tasks(tasks: Iterable[Task], criteria: FilterCriteria) -> List[Task]:
    return [t for t in tasks if matches(t, criteria)]
