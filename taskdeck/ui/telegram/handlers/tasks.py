from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from taskdeck.domain.common.ports import Clock
from taskdeck.domain.gamification.service import GamificationService
from taskdeck.domain.tasks.filtering import filter_tasks
from taskdeck.domain.tasks.models import Category, Permission, Priority, TaskDraft, TaskStatus
from taskdeck.domain.tasks.views import kanban_buckets
from taskdeck.ui.telegram.handlers._common import parse_due, require_session, show_card, show_tasks
from taskdeck.ui.telegram.keyboards.common import MENU_ADD, MENU_TASKS, cancel_kb, skip_cancel_kb
from taskdeck.ui.telegram.keyboards.tasks import (
    QUADRANT_BY_CODE,
    category_kb,
    delete_confirm_kb,
    priority_kb,
    unshare_kb,
)
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.states.flows import TaskFlow
from taskdeck.ui.telegram.texts import messages
from taskdeck.ui.telegram.texts.render import unlocked_banner

router = Router()


def _parts(cb: CallbackQuery) -> List[str]:
    return (cb.data or "").split(":")


async def _announce_unlocks(message: Message, session: UserSession, gamification: GamificationService) -> None:
    report = await gamification.report(session.user.id, session.tasks.tasks)
    banner = unlocked_banner(report)
    if banner:
        await message.answer(banner)


# ---- list ----

@router.message(Command("tasks"))
@router.message(F.text == MENU_TASKS)
async def tasks_cmd(message: Message, state: FSMContext, session: Optional[UserSession], clock: Clock, timezone: str):
    await state.clear()
    if not await require_session(message, session):
        return
    await show_tasks(message, session, clock.now(), timezone)


@router.message(Command("search"))
async def search_cmd(
    message: Message,
    command: CommandObject,
    session: Optional[UserSession],
    clock: Clock,
    timezone: str,
):
    if not await require_session(message, session):
        return
    session.criteria = replace(session.criteria, search=(command.args or "").strip())
    await show_tasks(message, session, clock.now(), timezone)


# ---- add flow ----

@router.message(Command("add"))
@router.message(F.text == MENU_ADD)
async def add_cmd(message: Message, state: FSMContext, session: Optional[UserSession], command: Optional[CommandObject] = None):
    await state.clear()
    if not await require_session(message, session):
        return
    title = (command.args or "").strip() if command else ""
    if title:
        await state.update_data(title=title)
        await state.set_state(TaskFlow.add_priority)
        await message.answer(messages.ASK_PRIORITY, reply_markup=priority_kb("add:pri"))
        return
    await state.set_state(TaskFlow.add_title)
    await message.answer(messages.ASK_TITLE, reply_markup=cancel_kb())


@router.message(TaskFlow.add_title)
async def add_title(message: Message, state: FSMContext):
    title = (message.text or "").strip()
    if not title:
        await message.answer(messages.ASK_TITLE, reply_markup=cancel_kb())
        return
    await state.update_data(title=title)
    await state.set_state(TaskFlow.add_priority)
    await message.answer(messages.ASK_PRIORITY, reply_markup=priority_kb("add:pri"))


@router.callback_query(TaskFlow.add_priority, F.data.startswith("add:pri:"))
async def add_priority(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.update_data(priority=_parts(cb)[-1])
    await state.set_state(TaskFlow.add_category)
    await cb.message.answer(messages.ASK_CATEGORY, reply_markup=category_kb("add:cat"))


@router.callback_query(TaskFlow.add_category, F.data.startswith("add:cat:"))
async def add_category(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.update_data(category=_parts(cb)[-1])
    await state.set_state(TaskFlow.add_due)
    await cb.message.answer(messages.ASK_DUE, reply_markup=skip_cancel_kb("add:due:skip"))


async def _finish_add(message: Message, state: FSMContext, session: UserSession, due, timezone: str) -> None:
    data = await state.get_data()
    await state.clear()
    draft = TaskDraft(
        title=data.get("title", ""),
        priority=Priority(data.get("priority", Priority.MEDIUM.value)),
        category=Category(data.get("category", Category.OTHER.value)),
        due_date=due,
    )
    res = await session.tasks.create(draft)
    if not res.success:
        await message.answer(res.error)
        return
    await message.answer("Task added.")
    await show_card(message, session, res.value, timezone)


@router.callback_query(TaskFlow.add_due, F.data == "add:due:skip")
async def add_due_skip(cb: CallbackQuery, state: FSMContext, session: Optional[UserSession], timezone: str):
    await cb.answer()
    if not await require_session(cb, session):
        await state.clear()
        return
    await _finish_add(cb.message, state, session, None, timezone)


@router.message(TaskFlow.add_due)
async def add_due(message: Message, state: FSMContext, session: Optional[UserSession], timezone: str):
    if not await require_session(message, session):
        await state.clear()
        return
    try:
        due = parse_due(message.text or "", timezone)
    except ValueError:
        await message.answer(messages.INVALID_DUE, reply_markup=skip_cancel_kb("add:due:skip"))
        return
    await _finish_add(message, state, session, due, timezone)


# ---- task card ----

@router.callback_query(F.data.startswith("t:open:"))
async def open_task(cb: CallbackQuery, session: Optional[UserSession], timezone: str):
    if not await require_session(cb, session):
        return
    task = session.tasks.store.find(_parts(cb)[-1])
    if task is None:
        await cb.answer("Task not found.", show_alert=True)
        return
    await cb.answer()
    await show_card(cb, session, task, timezone)


@router.callback_query(F.data.startswith("t:tog:"))
async def toggle_task(cb: CallbackQuery, session: Optional[UserSession], gamification: GamificationService, timezone: str):
    if not await require_session(cb, session):
        return
    res = await session.tasks.toggle(_parts(cb)[-1])
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Completed!" if res.value.is_completed else "Reopened.")
    await show_card(cb, session, res.value, timezone)
    if res.value.is_completed:
        await _announce_unlocks(cb.message, session, gamification)


@router.callback_query(F.data.startswith("t:del:"))
async def delete_task(cb: CallbackQuery, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    await cb.answer()
    await cb.message.answer("Delete this task?", reply_markup=delete_confirm_kb(_parts(cb)[-1]))


@router.callback_query(F.data.startswith("t:delok:"))
async def delete_task_confirmed(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(cb, session):
        return
    res = await session.tasks.delete(_parts(cb)[-1])
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Deleted.")
    await show_tasks(cb, session, clock.now(), timezone)


@router.callback_query(F.data.startswith("t:up:") | F.data.startswith("t:down:"))
async def move_task(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(cb, session):
        return
    _, direction, task_id = _parts(cb)
    res = await session.tasks.move_task(task_id, -1 if direction == "up" else 1)
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Moved." if res.changed else "Already there.")
    if res.changed:
        await show_tasks(cb, session, clock.now(), timezone)


@router.callback_query(F.data.startswith("t:kb:"))
async def kanban_move(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    """Move a card to the end of the other board column."""
    if not await require_session(cb, session):
        return
    task_id = _parts(cb)[-1]
    visible = filter_tasks(session.tasks.tasks, session.criteria)
    columns = kanban_buckets(visible)
    task = session.tasks.store.find(task_id)
    if task is None or task not in columns.column(task.status):
        await cb.answer("Task is not on the board.", show_alert=True)
        return
    source = task.status
    target = TaskStatus.PENDING if source == TaskStatus.COMPLETED else TaskStatus.COMPLETED
    res = await session.tasks.move_kanban(
        visible,
        source,
        [t.id for t in columns.column(source)].index(task_id),
        target,
        len(columns.column(target)),
    )
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer(f"Moved to {target.value}.")
    await show_tasks(cb, session, clock.now(), timezone)


@router.callback_query(F.data.startswith("t:q:"))
async def quadrant_move(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(cb, session):
        return
    _, _, code, task_id = _parts(cb)
    quadrant = QUADRANT_BY_CODE.get(code)
    if quadrant is None:
        await cb.answer("Unknown quadrant.", show_alert=True)
        return
    res = await session.tasks.move_to_quadrant(task_id, quadrant)
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Moved." if res.changed else "Already there.")
    await show_tasks(cb, session, clock.now(), timezone)


# ---- edit ----

@router.callback_query(F.data.startswith("t:pick:"))
async def pick_field(cb: CallbackQuery, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    _, _, field, task_id = _parts(cb)
    await cb.answer()
    if field == "pri":
        await cb.message.answer(messages.ASK_PRIORITY, reply_markup=priority_kb(f"t:setpri:{task_id}"))
    else:
        await cb.message.answer(messages.ASK_CATEGORY, reply_markup=category_kb(f"t:setcat:{task_id}"))


@router.callback_query(F.data.startswith("t:setpri:") | F.data.startswith("t:setcat:"))
async def set_enum_field(cb: CallbackQuery, session: Optional[UserSession], timezone: str):
    if not await require_session(cb, session):
        return
    _, action, task_id, value = _parts(cb)
    field = "priority" if action == "setpri" else "category"
    res = await session.tasks.edit(task_id, {field: value})
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Saved.")
    await show_card(cb, session, res.value, timezone)


_EDIT_STATES = {
    "title": (TaskFlow.edit_title, messages.ASK_NEW_TITLE),
    "desc": (TaskFlow.edit_description, messages.ASK_NEW_DESCRIPTION),
    "due": (TaskFlow.edit_due, messages.ASK_DUE),
}


@router.callback_query(F.data.startswith("t:edit:"))
async def edit_start(cb: CallbackQuery, state: FSMContext, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    _, _, field, task_id = _parts(cb)
    target = _EDIT_STATES.get(field)
    if target is None:
        await cb.answer()
        return
    await cb.answer()
    await state.set_state(target[0])
    await state.update_data(task_id=task_id)
    if field == "due":
        await cb.message.answer(target[1], reply_markup=skip_cancel_kb("t:duenone"))
    else:
        await cb.message.answer(target[1], reply_markup=cancel_kb())


async def _apply_edit(message: Message, state: FSMContext, session: UserSession, fields: dict, timezone: str) -> None:
    data = await state.get_data()
    res = await session.tasks.edit(data.get("task_id", ""), fields)
    if not res.success:
        # keep the state so the user can retry or /cancel
        await message.answer(res.error, reply_markup=cancel_kb())
        return
    await state.clear()
    await show_card(message, session, res.value, timezone)


@router.message(TaskFlow.edit_title)
async def edit_title(message: Message, state: FSMContext, session: Optional[UserSession], timezone: str):
    if not await require_session(message, session):
        await state.clear()
        return
    await _apply_edit(message, state, session, {"title": message.text or ""}, timezone)


@router.message(TaskFlow.edit_description)
async def edit_description(message: Message, state: FSMContext, session: Optional[UserSession], timezone: str):
    if not await require_session(message, session):
        await state.clear()
        return
    text = (message.text or "").strip()
    await _apply_edit(message, state, session, {"description": "" if text == "-" else text}, timezone)


@router.message(TaskFlow.edit_due)
async def edit_due(message: Message, state: FSMContext, session: Optional[UserSession], timezone: str):
    if not await require_session(message, session):
        await state.clear()
        return
    try:
        due = parse_due(message.text or "", timezone)
    except ValueError:
        await message.answer(messages.INVALID_DUE, reply_markup=cancel_kb())
        return
    await _apply_edit(message, state, session, {"due_date": due}, timezone)


@router.callback_query(TaskFlow.edit_due, F.data == "t:duenone")
async def edit_due_clear(cb: CallbackQuery, state: FSMContext, session: Optional[UserSession], timezone: str):
    await cb.answer()
    if not await require_session(cb, session):
        await state.clear()
        return
    await _apply_edit(cb.message, state, session, {"due_date": None}, timezone)


# ---- sharing ----

@router.callback_query(F.data.startswith("t:share:"))
async def share_start(cb: CallbackQuery, state: FSMContext, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    task = session.tasks.store.find(_parts(cb)[-1])
    if task is None:
        await cb.answer("Task not found.", show_alert=True)
        return
    await cb.answer()
    await state.set_state(TaskFlow.share_target)
    await state.update_data(task_id=task.id)
    await cb.message.answer(messages.ASK_SHARE_TARGET, reply_markup=cancel_kb())
    kb = unshare_kb(task)
    if kb is not None:
        await cb.message.answer("Currently shared with:", reply_markup=kb)


@router.message(TaskFlow.share_target)
async def share_target(message: Message, state: FSMContext, session: Optional[UserSession], timezone: str):
    if not await require_session(message, session):
        await state.clear()
        return
    parts = (message.text or "").split()
    user_ref = parts[0] if parts else ""
    permission = parts[1] if len(parts) > 1 else Permission.VIEW.value
    data = await state.get_data()
    res = await session.tasks.share(data.get("task_id", ""), user_ref, permission)
    if not res.success:
        await message.answer(res.error, reply_markup=cancel_kb())
        return
    await state.clear()
    await show_card(message, session, res.value, timezone)


@router.callback_query(F.data.startswith("t:unsh:"))
async def unshare(cb: CallbackQuery, state: FSMContext, session: Optional[UserSession], timezone: str):
    if not await require_session(cb, session):
        return
    _, _, idx, task_id = _parts(cb)
    task = session.tasks.store.find(task_id)
    refs = sorted(task.shared_with) if task else []
    if not idx.isdigit() or int(idx) >= len(refs):
        await cb.answer("Share entry not found.", show_alert=True)
        return
    res = await session.tasks.unshare(task_id, refs[int(idx)])
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await state.clear()
    await cb.answer("Removed.")
    await show_card(cb, session, res.value, timezone)
