"""
Filter engine: order preserving, every active filter must pass.
"""
import pytest

from taskdeck.domain.common.errors import ValidationError
from taskdeck.domain.tasks.filtering import filter_tasks
from taskdeck.domain.tasks.models import ALL, Category, FilterCriteria, Priority, TaskStatus
from taskdeck.domain.tasks.rules import make_criteria

from tests.fakes import make_task


def _ten_tasks():
    done = {1, 4, 6, 9}
    return [
        make_task(f"t{i}", i, status=TaskStatus.COMPLETED if i in done else TaskStatus.PENDING)
        for i in range(10)
    ]


def test_status_completed_returns_exactly_completed_in_original_order():
    tasks = _ten_tasks()
    result = filter_tasks(tasks, FilterCriteria(status="completed"))
    assert [t.id for t in result] == ["t1", "t4", "t6", "t9"]


def test_default_criteria_keeps_everything():
    tasks = _ten_tasks()
    assert filter_tasks(tasks, FilterCriteria()) == tasks
    assert FilterCriteria().is_default


def test_filters_are_conjunctive():
    tasks = [
        make_task("a", 0, priority=Priority.HIGH, category=Category.WORK),
        make_task("b", 1, priority=Priority.HIGH, category=Category.HEALTH),
        make_task("c", 2, priority=Priority.LOW, category=Category.WORK),
    ]
    result = filter_tasks(tasks, FilterCriteria(priority="high", category="work"))
    assert [t.id for t in result] == ["a"]


def test_search_matches_title_or_description_case_insensitive():
    tasks = [
        make_task("a", 0, title="Buy MILK"),
        make_task("b", 1, title="Call mom", description="about the milk delivery"),
        make_task("c", 2, title="Gym"),
    ]
    result = filter_tasks(tasks, FilterCriteria(search="milk"))
    assert [t.id for t in result] == ["a", "b"]


def test_search_treats_missing_description_as_empty():
    task = make_task("a", 0, title="Plan", description=None)
    assert filter_tasks([task], FilterCriteria(search="x")) == []
    assert filter_tasks([task], FilterCriteria(search="pla")) == [task]


def test_blank_search_is_ignored():
    tasks = _ten_tasks()
    assert len(filter_tasks(tasks, FilterCriteria(search="   "))) == 10


def test_make_criteria_accepts_all_and_rejects_unknown_values():
    c = make_criteria(status="Pending", priority=ALL, category=None)
    assert c.status == TaskStatus.PENDING.value
    assert c.priority == ALL and c.category == ALL
    with pytest.raises(ValidationError):
        make_criteria(priority="urgent")
