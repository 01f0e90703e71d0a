from __future__ import annotations

from typing import Optional, Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from taskdeck.domain.tasks.models import TaskDraft


def suggestions_kb(drafts: Sequence[TaskDraft]) -> Optional[InlineKeyboardMarkup]:
    if not drafts:
        return None
    kb = InlineKeyboardBuilder()
    for i, d in enumerate(drafts):
        title = d.title if len(d.title) <= 40 else d.title[:39] + "…"
        kb.button(text=f"+ {title}", callback_data=f"sg:add:{i}")
    kb.button(text="Add all", callback_data="sg:all")
    kb.button(text="Dismiss", callback_data="sg:clear")
    kb.adjust(*([1] * len(drafts)), 2)
    return kb.as_markup()
