from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from taskdeck.domain.common.errors import ValidationError
from taskdeck.domain.common.ports import Clock
from taskdeck.domain.tasks.models import ALL, FilterCriteria, ViewType
from taskdeck.domain.tasks.rules import make_criteria
from taskdeck.ui.telegram.handlers._common import require_session, show_tasks
from taskdeck.ui.telegram.keyboards.tasks import filter_kb
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.texts.render import criteria_line

router = Router()

_FILTER_FIELDS = {"status": "status", "pri": "priority", "cat": "category"}


def _parse_view(raw: str) -> Optional[ViewType]:
    try:
        return ViewType((raw or "").strip().lower())
    except ValueError:
        return None


# ---- view mode ----

@router.message(Command("view"))
async def view_cmd(message: Message, command: CommandObject, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(message, session):
        return
    if command.args:
        view = _parse_view(command.args)
        if view is None:
            await message.answer("Views: " + ", ".join(v.value for v in ViewType))
            return
        session.view = view
    await show_tasks(message, session, clock.now(), timezone)


@router.callback_query(F.data.startswith("v:"))
async def view_cb(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(cb, session):
        return
    view = _parse_view(cb.data.split(":", 1)[1])
    if view is None:
        await cb.answer("Unknown view.", show_alert=True)
        return
    await cb.answer()
    session.view = view
    await show_tasks(cb, session, clock.now(), timezone)


# ---- filters ----

@router.message(Command("filter"))
async def filter_cmd(message: Message, command: CommandObject, session: Optional[UserSession], clock: Clock, timezone: str):
    """
    /filter                 -> filter keyboard
    /filter clear           -> reset every filter
    /filter status=pending priority=high category=work
    """
    if not await require_session(message, session):
        return
    args = (command.args or "").strip()
    if not args:
        await message.answer(criteria_line(session.criteria) or "No filters.", reply_markup=filter_kb(session.criteria))
        return
    if args.lower() == "clear":
        session.criteria = FilterCriteria()
        await show_tasks(message, session, clock.now(), timezone)
        return

    values = {"status": session.criteria.status, "priority": session.criteria.priority, "category": session.criteria.category}
    for part in args.split():
        key, _, value = part.partition("=")
        if key not in values or not value:
            await message.answer("Usage: /filter status=pending priority=high category=work")
            return
        values[key] = value
    try:
        session.criteria = make_criteria(search=session.criteria.search, **values)
    except ValidationError as e:
        await message.answer(str(e))
        return
    await show_tasks(message, session, clock.now(), timezone)


@router.callback_query(F.data == "f:menu")
async def filter_menu(cb: CallbackQuery, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    await cb.answer()
    await cb.message.answer(criteria_line(session.criteria) or "No filters.", reply_markup=filter_kb(session.criteria))


@router.callback_query(F.data.startswith("f:status:") | F.data.startswith("f:pri:") | F.data.startswith("f:cat:"))
async def filter_pick(cb: CallbackQuery, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    _, key, value = cb.data.split(":", 2)
    field = _FILTER_FIELDS[key]
    current = session.criteria
    try:
        picked = make_criteria(**{field: value}) if value != ALL else FilterCriteria()
    except ValidationError as e:
        await cb.answer(str(e), show_alert=True)
        return
    session.criteria = replace(current, **{field: getattr(picked, field)})
    await cb.answer()
    await cb.message.edit_reply_markup(reply_markup=filter_kb(session.criteria))


@router.callback_query(F.data == "f:clear")
async def filter_clear(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(cb, session):
        return
    await cb.answer("Filters cleared.")
    session.criteria = FilterCriteria()
    await show_tasks(cb, session, clock.now(), timezone)


@router.callback_query(F.data == "f:done")
async def filter_done(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(cb, session):
        return
    await cb.answer()
    await show_tasks(cb, session, clock.now(), timezone)


# ---- calendar month navigation ----

@router.callback_query(F.data.startswith("cal:"))
async def month_nav(cb: CallbackQuery, session: Optional[UserSession], clock: Clock, timezone: str):
    if not await require_session(cb, session):
        return
    key = cb.data.split(":", 1)[1]
    if key == "today":
        session.month = None
    else:
        try:
            session.month = datetime.strptime(key, "%Y-%m").date()
        except ValueError:
            await cb.answer("Bad month.", show_alert=True)
            return
    await cb.answer()
    session.view = ViewType.CALENDAR
    await show_tasks(cb, session, clock.now(), timezone)
