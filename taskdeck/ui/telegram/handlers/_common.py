from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Union
from zoneinfo import ZoneInfo

from aiogram.types import CallbackQuery, Message

from taskdeck.domain.tasks.filtering import filter_tasks
from taskdeck.domain.tasks.models import Task, ViewType
from taskdeck.ui.telegram.keyboards.tasks import month_nav_kb, task_card_kb, tasks_list_kb, view_kb
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.texts import messages
from taskdeck.ui.telegram.texts.render import render_view, task_card

Event = Union[Message, CallbackQuery]

# date-only input means end of that day
DATE_ONLY_TIME = time(23, 59)


async def require_session(event: Event, session: Optional[UserSession]) -> Optional[UserSession]:
    if session is not None:
        return session
    if isinstance(event, CallbackQuery):
        await event.answer(messages.SIGNED_IN_REQUIRED, show_alert=True)
    else:
        await event.answer(messages.SIGNED_IN_REQUIRED)
    return None


def parse_due(text: str, tz_name: str) -> datetime:
    """
    Accepts:
      - YYYY-MM-DD        (end of that day)
      - YYYY-MM-DD HH:MM
      - DD.MM.YYYY [HH:MM]
    Raises ValueError otherwise.
    """
    raw = (text or "").strip()
    tz = ZoneInfo(tz_name)
    for fmt in ("%Y-%m-%d %H:%M", "%d.%m.%Y %H:%M"):
        try:
            return datetime.strptime(raw, fmt).replace(tzinfo=tz)
        except ValueError:
            pass
    for fmt in ("%Y-%m-%d", "%d.%m.%Y"):
        try:
            d = datetime.strptime(raw, fmt).date()
            return datetime.combine(d, DATE_ONLY_TIME, tzinfo=tz)
        except ValueError:
            pass
    raise ValueError("Invalid date format")


def month_key(d: date) -> str:
    return d.strftime("%Y-%m")


def shift_month(d: date, delta: int) -> date:
    index = d.year * 12 + d.month - 1 + delta
    return date(index // 12, index % 12 + 1, 1)


def current_month(session: UserSession, now: datetime, tz_name: str) -> date:
    if session.month is not None:
        return session.month
    return now.astimezone(ZoneInfo(tz_name)).date().replace(day=1)


def _target(event: Event) -> Message:
    return event.message if isinstance(event, CallbackQuery) else event


async def show_tasks(event: Event, session: UserSession, now: datetime, tz_name: str) -> None:
    """Render the current view from the canonical task list and filter state."""
    visible = filter_tasks(session.tasks.tasks, session.criteria)
    month = current_month(session, now, tz_name)
    text = render_view(session.view, visible, session.criteria, now, month, ZoneInfo(tz_name))
    msg = _target(event)
    await msg.answer(text, reply_markup=view_kb(session.view))
    if session.view == ViewType.CALENDAR:
        await msg.answer(
            "Month:",
            reply_markup=month_nav_kb(month_key(shift_month(month, -1)), month_key(shift_month(month, 1))),
        )
    kb = tasks_list_kb(visible)
    if kb is not None:
        await msg.answer("Open a task:", reply_markup=kb)


async def show_card(event: Event, session: UserSession, task: Task, tz_name: str) -> None:
    await _target(event).answer(
        task_card(task, ZoneInfo(tz_name)),
        reply_markup=task_card_kb(task, session.view),
    )
