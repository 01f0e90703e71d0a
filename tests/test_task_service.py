"""
Task mutation protocol: the repository is written first and the local store
only changes after it succeeds.
"""
import asyncio
from datetime import datetime, timedelta, timezone

from taskdeck.domain.tasks.models import Permission, Priority, Quadrant, TaskDraft, TaskStatus
from taskdeck.domain.tasks.service import TaskService

from tests.fakes import T0, FixedClock, InMemoryTaskRepo, SeqIds, make_task


def _service(tasks=(), clock=None):
    repo = InMemoryTaskRepo(tasks)
    svc = TaskService(repo, clock or FixedClock(), SeqIds("new"), owner_id="u1")
    asyncio.run(svc.load())
    return svc, repo


def _five():
    return [make_task(f"t{i}", i) for i in range(5)]


def test_load_orders_store_by_order():
    svc, _ = _service([make_task("b", 1), make_task("a", 0)])
    assert [t.id for t in svc.tasks] == ["a", "b"]


def test_load_failure_keeps_store_and_reports():
    repo = InMemoryTaskRepo([make_task("a", 0)])
    repo.fail = True
    svc = TaskService(repo, FixedClock(), SeqIds(), owner_id="u1")
    res = asyncio.run(svc.load())
    assert not res.success
    assert svc.tasks == []


def test_create_appends_after_highest_order():
    svc, repo = _service([make_task("a", 0), make_task("b", 7)])
    res = asyncio.run(svc.create(TaskDraft(title="  Write report ", priority=Priority.HIGH)))
    assert res.success
    task = res.value
    assert task.title == "Write report"
    assert task.order == 8
    assert task.status == TaskStatus.PENDING
    assert task.created_at == task.updated_at == T0
    assert task.completed_at is None
    assert repo.rows[task.id] == task
    assert svc.store.find(task.id) == task


def test_create_rejects_blank_title_without_remote_call():
    svc, repo = _service()
    res = asyncio.run(svc.create(TaskDraft(title="   ")))
    assert not res.success
    assert "create_task" not in repo.calls


def test_create_failure_leaves_store_unchanged():
    svc, repo = _service(_five())
    repo.fail = True
    res = asyncio.run(svc.create(TaskDraft(title="x")))
    assert not res.success
    assert len(svc.tasks) == 5


def test_toggle_sets_and_clears_completed_at():
    clock = FixedClock(T0 + timedelta(hours=2))
    svc, _ = _service([make_task("a", 0)], clock)

    done = asyncio.run(svc.toggle("a")).value
    assert done.status == TaskStatus.COMPLETED
    assert done.completed_at is not None and done.completed_at >= done.created_at

    back = asyncio.run(svc.toggle("a")).value
    assert back.status == TaskStatus.PENDING
    assert back.completed_at is None


def test_toggle_completed_at_never_before_created_at():
    # clock behind the task's creation time
    created = datetime(2026, 3, 5, tzinfo=timezone.utc)
    svc, _ = _service([make_task("a", 0, created_at=created)], FixedClock(T0))
    done = asyncio.run(svc.toggle("a")).value
    assert done.completed_at == created


def test_failed_toggle_leaves_store_untouched():
    svc, repo = _service([make_task("a", 0)])
    before = svc.store.get("a")
    repo.fail = True
    res = asyncio.run(svc.toggle("a"))
    assert not res.success
    assert svc.store.get("a") == before


def test_edit_status_keeps_completed_at_consistent():
    svc, _ = _service([make_task("a", 0)])
    res = asyncio.run(svc.edit("a", {"status": "completed", "priority": "high"}))
    assert res.success
    assert res.value.completed_at is not None
    assert res.value.priority == Priority.HIGH


def test_edit_rejects_unknown_fields_and_missing_task():
    svc, _ = _service([make_task("a", 0)])
    assert not asyncio.run(svc.edit("a", {"order": 3})).success
    assert not asyncio.run(svc.edit("nope", {"title": "x"})).success


def test_delete_removes_after_remote_success():
    svc, repo = _service(_five())
    res = asyncio.run(svc.delete("t2"))
    assert res.success
    assert "t2" not in svc.store
    assert "t2" not in repo.rows
    assert not asyncio.run(svc.delete("t2")).success


def test_reorder_zero_to_two_in_five():
    svc, repo = _service(_five())
    res = asyncio.run(svc.reorder(0, 2))
    assert res.success
    assert [t.id for t in svc.tasks] == ["t1", "t2", "t0", "t3", "t4"]
    assert [t.order for t in svc.tasks] == [0, 1, 2, 3, 4]
    assert {t.id: t.order for t in repo.rows.values()} == {"t1": 0, "t2": 1, "t0": 2, "t3": 3, "t4": 4}


def test_reorder_does_not_touch_updated_at():
    svc, _ = _service(_five(), FixedClock(T0 + timedelta(days=1)))
    asyncio.run(svc.reorder(4, 0))
    assert all(t.updated_at == T0 for t in svc.tasks)


def test_failed_reorder_keeps_old_order():
    svc, repo = _service(_five())
    repo.fail = True
    res = asyncio.run(svc.reorder(0, 4))
    assert not res.success
    assert [t.id for t in svc.tasks] == ["t0", "t1", "t2", "t3", "t4"]


def test_move_task_at_edge_is_a_noop():
    svc, repo = _service(_five())
    res = asyncio.run(svc.move_task("t0", -1))
    assert res.success and not res.changed
    assert "update_orders" not in repo.calls


def test_move_kanban_to_other_column_toggles_and_reorders():
    svc, _ = _service([make_task("a", 0), make_task("b", 1, status=TaskStatus.COMPLETED), make_task("c", 2)])
    res = asyncio.run(svc.move_kanban(svc.tasks, TaskStatus.PENDING, 0, TaskStatus.COMPLETED, 1))
    assert res.success
    a = svc.store.get("a")
    assert a.status == TaskStatus.COMPLETED
    assert a.completed_at is not None
    assert [t.id for t in svc.tasks] == ["b", "a", "c"]


def test_move_to_quadrant_writes_only_when_flags_change():
    svc, repo = _service([make_task("a", 0, is_urgent=True, is_important=True)])
    same = asyncio.run(svc.move_to_quadrant("a", Quadrant.URGENT_IMPORTANT))
    assert same.success and not same.changed
    assert "update_task" not in repo.calls

    moved = asyncio.run(svc.move_to_quadrant("a", "not-urgent-important"))
    assert moved.success
    assert moved.value.quadrant == Quadrant.NOT_URGENT_IMPORTANT


def test_share_and_unshare():
    svc, _ = _service([make_task("a", 0)])
    shared = asyncio.run(svc.share("a", "bob@example.com", "edit")).value
    assert shared.shared_with == {"bob@example.com": Permission.EDIT}

    # last writer wins
    again = asyncio.run(svc.share("a", "bob@example.com", "admin")).value
    assert again.shared_with["bob@example.com"] == Permission.ADMIN

    assert not asyncio.run(svc.share("a", "bob@example.com", "owner")).success
    removed = asyncio.run(svc.unshare("a", "bob@example.com")).value
    assert removed.shared_with == {}
    assert not asyncio.run(svc.unshare("a", "bob@example.com")).success


def test_failed_kanban_move_leaves_status_and_order_untouched():
    svc, repo = _service([make_task("a", 0), make_task("b", 1, status=TaskStatus.COMPLETED), make_task("c", 2)])
    before = list(svc.tasks)
    repo.fail_on = {"update_orders"}

    res = asyncio.run(svc.move_kanban(svc.tasks, TaskStatus.PENDING, 0, TaskStatus.COMPLETED, 1))
    assert not res.success
    assert svc.tasks == before
    assert repo.rows["a"].status == TaskStatus.PENDING
    assert {t.id: t.order for t in repo.rows.values()} == {"a": 0, "b": 1, "c": 2}


def test_kanban_move_within_column_keeps_status():
    svc, repo = _service([make_task("a", 0), make_task("b", 1), make_task("c", 2)])
    res = asyncio.run(svc.move_kanban(svc.tasks, TaskStatus.PENDING, 0, TaskStatus.PENDING, 2))
    assert res.success
    assert [t.id for t in svc.tasks] == ["b", "c", "a"]
    assert all(t.status == TaskStatus.PENDING and t.updated_at == T0 for t in svc.tasks)
    assert {t.id: t.order for t in repo.rows.values()} == {"b": 0, "c": 1, "a": 2}
