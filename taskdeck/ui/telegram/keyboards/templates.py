from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from taskdeck.domain.templates.models import TaskTemplate


def templates_kb(templates: Sequence[TaskTemplate]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for t in templates:
        name = t.name if len(t.name) <= 30 else t.name[:29] + "…"
        kb.button(text=f"Use: {name}", callback_data=f"tp:use:{t.id}")
        kb.button(text="Delete", callback_data=f"tp:del:{t.id}")
    kb.button(text="New template", callback_data="tp:new")
    kb.adjust(*([2] * len(templates)), 1)
    return kb.as_markup()
