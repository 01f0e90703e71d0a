from __future__ import annotations

import contextlib
from typing import Optional
from zoneinfo import ZoneInfo

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from taskdeck.domain.calendar.service import CalendarService
from taskdeck.ui.telegram.handlers._common import require_session, show_card
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.texts.render import upcoming_events_text

router = Router()


@router.message(Command("calendar_connect"))
async def connect_cmd(
    message: Message,
    command: CommandObject,
    session: Optional[UserSession],
    calendar_service: CalendarService,
    timezone: str,
):
    """/calendar_connect [access token]; without a token the configured one is used."""
    if not await require_session(message, session):
        return
    token = (command.args or "").strip()
    if token:
        # the token should not stay in the chat history
        with contextlib.suppress(TelegramBadRequest):
            await message.delete()
    res = await calendar_service.connect(session.user.id, token)
    if not res.success:
        await message.answer(res.error)
        return
    events = await calendar_service.upcoming(session.user.id)
    await message.answer("Google Calendar connected.\n\n" + upcoming_events_text(events, ZoneInfo(timezone)))


@router.message(Command("calendar_disconnect"))
async def disconnect_cmd(message: Message, session: Optional[UserSession], calendar_service: CalendarService):
    if not await require_session(message, session):
        return
    res = calendar_service.disconnect(session.user.id)
    await message.answer("Google Calendar disconnected." if res.success else res.error)


@router.message(Command("calendar"))
async def upcoming_cmd(message: Message, session: Optional[UserSession], calendar_service: CalendarService, timezone: str):
    if not await require_session(message, session):
        return
    if not calendar_service.is_connected(session.user.id):
        await message.answer("Calendar is not connected. Use /calendar_connect first.")
        return
    events = await calendar_service.upcoming(session.user.id)
    await message.answer(upcoming_events_text(events, ZoneInfo(timezone)))


@router.callback_query(F.data.startswith("t:cal:"))
async def export_task(cb: CallbackQuery, session: Optional[UserSession], calendar_service: CalendarService, timezone: str):
    if not await require_session(cb, session):
        return
    res = await calendar_service.export_task(session.tasks, cb.data.split(":", 2)[2])
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Added to Google Calendar.")
    await show_card(cb, session, res.value, timezone)
