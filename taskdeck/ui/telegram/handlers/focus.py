from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from aiogram import Bot, F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from taskdeck.domain.common.models import OperationResult
from taskdeck.domain.focus.models import TimerMode
from taskdeck.infra.scheduler.ticker import FocusTicker
from taskdeck.ui.telegram.handlers._common import require_session
from taskdeck.ui.telegram.keyboards.common import MENU_FOCUS
from taskdeck.ui.telegram.keyboards.focus import focus_controls_kb
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.texts import messages
from taskdeck.ui.telegram.texts.render import focus_status

logger = logging.getLogger(__name__)

router = Router()

DURATION_KEYS = {
    "focus": TimerMode.FOCUS,
    "short": TimerMode.SHORT_BREAK,
    "long": TimerMode.LONG_BREAK,
}


def parse_duration_setting(arg: str) -> Optional[Tuple[TimerMode, int]]:
    """`short 10` -> (SHORT_BREAK, 10); None when arg is not a duration setting."""
    parts = arg.split()
    if len(parts) != 2 or not parts[1].isdigit():
        return None
    mode = DURATION_KEYS.get(parts[0].lower())
    if mode is None:
        return None
    return mode, int(parts[1])


async def _send_status(target: Message, session: UserSession) -> None:
    focus = session.focus
    task = session.tasks.store.find(focus.session.task_id) if focus.session.task_id else None
    await target.answer(
        focus_status(focus.session, focus.upcoming_mode, focus.completed_focus_count, task),
        reply_markup=focus_controls_kb(focus.session, focus.upcoming_mode),
    )


def _run_timer(bot: Bot, ticker: FocusTicker, chat_id: int, user_key: int, session: UserSession) -> None:
    """Drive the countdown once per second until it completes or is stopped."""

    async def step() -> bool:
        completion = await session.focus.tick()
        if completion is not None:
            await bot.send_message(
                chat_id,
                messages.FOCUS_DONE.format(mode=completion.mode.label, next_mode=completion.next_mode.label),
                reply_markup=focus_controls_kb(session.focus.session, session.focus.upcoming_mode),
            )
            return False
        # paused sessions keep the loop alive; tick() is a no-op for them
        return session.focus.session.is_active

    ticker.start(user_key, step)


async def _start(
    event: Union[Message, CallbackQuery],
    bot: Bot,
    ticker: FocusTicker,
    session: UserSession,
    task_id: Optional[str] = None,
    minutes: Optional[int] = None,
    mode: Optional[TimerMode] = None,
) -> None:
    res = session.focus.start(task_id=task_id, minutes=minutes, mode=mode)
    target = event.message if isinstance(event, CallbackQuery) else event
    if not res.success:
        await target.answer(res.error)
        return
    _run_timer(bot, ticker, target.chat.id, event.from_user.id, session)
    logger.info(
        "Focus timer started user_id=%s mode=%s minutes=%s",
        event.from_user.id,
        session.focus.session.mode.value,
        session.focus.session.duration_minutes,
    )
    await _send_status(target, session)


@router.message(Command("focus"))
@router.message(F.text == MENU_FOCUS)
async def focus_cmd(
    message: Message,
    bot: Bot,
    ticker: FocusTicker,
    session: Optional[UserSession],
    command: Optional[CommandObject] = None,
):
    """
    /focus            -> timer status
    /focus 50         -> start a 50 minute focus session now
    /focus short 10   -> short breaks last 10 minutes from now on
    """
    if not await require_session(message, session):
        return
    arg = (command.args or "").strip() if command else ""
    if not arg:
        await _send_status(message, session)
        return
    setting = parse_duration_setting(arg)
    if setting is not None:
        mode, minutes = setting
        res = session.focus.set_duration(mode, minutes)
        await message.answer(
            messages.FOCUS_DURATION_SET.format(mode=mode.label, minutes=minutes) if res.success else res.error
        )
        return
    if not arg.isdigit():
        await message.answer("Usage: /focus [minutes] or /focus focus|short|long <minutes>")
        return
    await _start(message, bot, ticker, session, minutes=int(arg), mode=TimerMode.FOCUS)


@router.callback_query(F.data.startswith("t:focus:"))
async def focus_on_task(cb: CallbackQuery, bot: Bot, ticker: FocusTicker, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    task_id = cb.data.split(":", 2)[2]
    if session.tasks.store.find(task_id) is None:
        await cb.answer("Task not found.", show_alert=True)
        return
    await cb.answer()
    await _start(cb, bot, ticker, session, task_id=task_id, mode=TimerMode.FOCUS)


@router.callback_query(F.data.startswith("fc:start:"))
async def focus_start_mode(cb: CallbackQuery, bot: Bot, ticker: FocusTicker, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    try:
        mode = TimerMode(cb.data.split(":", 2)[2])
    except ValueError:
        await cb.answer("Unknown timer mode.", show_alert=True)
        return
    await cb.answer()
    await _start(cb, bot, ticker, session, mode=mode)


@router.callback_query(F.data.in_({"fc:pause", "fc:resume", "fc:reset", "fc:stop", "fc:show"}))
async def focus_control(cb: CallbackQuery, bot: Bot, ticker: FocusTicker, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    action = cb.data.split(":", 1)[1]
    focus = session.focus
    user_key = cb.from_user.id

    if action == "pause":
        res = focus.pause()
    elif action == "resume":
        res = focus.resume()
        if res.success and not ticker.is_running(user_key):
            _run_timer(bot, ticker, cb.message.chat.id, user_key, session)
    elif action == "reset":
        res = focus.reset()
        if res.success:
            _run_timer(bot, ticker, cb.message.chat.id, user_key, session)
    elif action == "stop":
        res = focus.stop()
        if res.success:
            ticker.cancel(user_key)
    else:
        res = OperationResult.ok()

    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer()
    await _send_status(cb.message, session)
