"""
Templates: validation, search and turning a template into a task.
"""
import asyncio

from taskdeck.domain.tasks.models import Category, Priority
from taskdeck.domain.tasks.service import TaskService
from taskdeck.domain.templates.models import TemplateDraft
from taskdeck.domain.templates.rules import describe_with_steps, search_templates
from taskdeck.domain.templates.service import TemplateService

from tests.fakes import FixedClock, InMemoryTaskRepo, InMemoryTemplateRepo, SeqIds


def _service():
    return TemplateService(InMemoryTemplateRepo(), FixedClock(), SeqIds("tpl"))


def _draft(**kw):
    base = dict(
        name="Weekly review",
        description="Look back at the week",
        priority=Priority.HIGH,
        category=Category.WORK,
        estimated_minutes=30,
        steps=["Inbox zero", "  ", "Plan next week "],
    )
    base.update(kw)
    return TemplateDraft(**base)


def test_create_cleans_steps_and_lists_per_owner():
    svc = _service()
    res = asyncio.run(svc.create("u1", _draft()))
    assert res.success
    assert res.value.steps == ["Inbox zero", "Plan next week"]
    assert res.value.created_by == "u1"
    assert [t.id for t in asyncio.run(svc.list_templates("u1"))] == [res.value.id]
    assert asyncio.run(svc.list_templates("someone-else")) == []


def test_create_validates_name_and_estimate():
    svc = _service()
    assert not asyncio.run(svc.create("u1", _draft(name=" "))).success
    assert not asyncio.run(svc.create("u1", _draft(estimated_minutes=0))).success


def test_search_matches_name_or_description():
    svc = _service()
    asyncio.run(svc.create("u1", _draft()))
    asyncio.run(svc.create("u1", _draft(name="Groceries", description="milk, eggs")))
    names = [t.name for t in search_templates(asyncio.run(svc.list_templates("u1")), "EGGS")]
    assert names == ["Groceries"]
    assert len(asyncio.run(svc.list_templates("u1", "week"))) == 1


def test_update_and_delete():
    svc = _service()
    created = asyncio.run(svc.create("u1", _draft())).value
    updated = asyncio.run(svc.update("u1", created.id, _draft(name="Monthly review", steps=[])))
    assert updated.success and updated.value.name == "Monthly review"
    assert updated.value.created_at == created.created_at

    assert not asyncio.run(svc.update("u1", "missing", _draft())).success
    assert asyncio.run(svc.delete("u1", created.id)).success
    assert not asyncio.run(svc.delete("u1", created.id)).success


def test_describe_with_steps():
    assert describe_with_steps("", []) == ""
    assert describe_with_steps("Intro", ["a", "b"]) == "Intro\n\n- [ ] a\n- [ ] b"
    assert describe_with_steps("", ["a"]) == "- [ ] a"


def test_create_from_template_builds_task():
    svc = _service()
    template = asyncio.run(svc.create("u1", _draft())).value
    tasks = TaskService(InMemoryTaskRepo(), FixedClock(), SeqIds("t"), owner_id="u1")

    res = asyncio.run(svc.create_from_template(tasks, template.id))
    assert res.success
    task = res.value
    assert task.title == "Weekly review"
    assert task.priority == Priority.HIGH
    assert task.category == Category.WORK
    assert "- [ ] Inbox zero" in task.description

    assert not asyncio.run(svc.create_from_template(tasks, "missing")).success
