from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from taskdeck.domain.focus.models import FocusSession, FocusState, TimerMode


def focus_controls_kb(session: FocusSession, upcoming: TimerMode) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    if session.state == FocusState.RUNNING:
        kb.button(text="Pause", callback_data="fc:pause")
    elif session.state == FocusState.PAUSED:
        kb.button(text="Resume", callback_data="fc:resume")
    if session.state != FocusState.IDLE:
        kb.button(text="Reset", callback_data="fc:reset")
        kb.button(text="Stop", callback_data="fc:stop")
    if session.state in (FocusState.IDLE, FocusState.COMPLETED):
        kb.button(text=f"Start {upcoming.label}", callback_data=f"fc:start:{upcoming.value}")
    kb.button(text="Refresh", callback_data="fc:show")
    kb.adjust(3, 2)
    return kb.as_markup()
