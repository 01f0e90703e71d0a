"""
Calendar export: connection per owner, due date precondition and event id
written back to the task.
"""
import asyncio
from datetime import timedelta

import pytest

from taskdeck.domain.calendar.service import NO_DUE_DATE, NOT_CONNECTED, CalendarService, build_event
from taskdeck.domain.common.errors import PreconditionError
from taskdeck.domain.tasks.service import TaskService

from tests.fakes import T0, FakeCalendarGateway, FixedClock, InMemoryTaskRepo, SeqIds, make_task


def _setup(tasks=()):
    gateway = FakeCalendarGateway()
    svc = CalendarService(gateway, FixedClock(), "Europe/Helsinki")
    task_service = TaskService(InMemoryTaskRepo(tasks), FixedClock(), SeqIds(), owner_id="u1")
    asyncio.run(task_service.load())
    return svc, gateway, task_service


def test_build_event_requires_due_date():
    with pytest.raises(PreconditionError):
        build_event(make_task("a", 0), "UTC")

    due = T0 + timedelta(days=1)
    event = build_event(make_task("a", 0, title="Dentist", due_date=due), "UTC")
    assert event.summary == "Dentist"
    assert event.end - event.start == timedelta(minutes=30)
    assert event.reminder_minutes == (30,)


def test_connect_and_disconnect():
    svc, _, _ = _setup()
    assert not asyncio.run(svc.connect("u1", "bad-token")).success
    assert not svc.is_connected("u1")
    assert not asyncio.run(svc.connect("u1")).success

    assert asyncio.run(svc.connect("u1", "good-token")).success
    assert svc.is_connected("u1")
    assert svc.disconnect("u1").success
    assert not svc.disconnect("u1").success


def test_default_token_is_used_when_none_given():
    gateway = FakeCalendarGateway()
    svc = CalendarService(gateway, FixedClock(), "UTC", default_token="good-token")
    assert asyncio.run(svc.connect("u1")).success


def test_export_needs_connection_and_due_date():
    svc, gateway, tasks = _setup([make_task("a", 0), make_task("b", 1, due_date=T0 + timedelta(days=2))])

    no_due = asyncio.run(svc.export_task(tasks, "a"))
    assert no_due.error == NO_DUE_DATE

    not_connected = asyncio.run(svc.export_task(tasks, "b"))
    assert not_connected.error == NOT_CONNECTED
    assert gateway.inserted == []


def test_export_stores_event_id_on_task():
    svc, gateway, tasks = _setup([make_task("b", 0, due_date=T0 + timedelta(days=2))])
    asyncio.run(svc.connect("u1", "good-token"))

    res = asyncio.run(svc.export_task(tasks, "b"))
    assert res.success
    assert res.value.calendar_event_id == "ev1"
    assert tasks.store.get("b").calendar_event_id == "ev1"
    assert gateway.inserted[0].time_zone == "Europe/Helsinki"

    upcoming = asyncio.run(svc.upcoming("u1", days=7))
    assert [e.event_id for e in upcoming] == ["ev1"]


def test_gateway_failure_leaves_task_untouched():
    svc, gateway, tasks = _setup([make_task("b", 0, due_date=T0 + timedelta(days=2))])
    asyncio.run(svc.connect("u1", "good-token"))
    gateway.fail_insert = True
    res = asyncio.run(svc.export_task(tasks, "b"))
    assert not res.success
    assert tasks.store.get("b").calendar_event_id is None
