from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup, ReplyKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder, ReplyKeyboardBuilder

MENU_TASKS = "Tasks"
MENU_ADD = "Add task"
MENU_FOCUS = "Focus"
MENU_PROGRESS = "Progress"
MENU_SUGGEST = "Suggest"
MENU_TEMPLATES = "Templates"


def main_menu_kb() -> ReplyKeyboardMarkup:
    kb = ReplyKeyboardBuilder()

    kb.button(text=MENU_TASKS)
    kb.button(text=MENU_ADD)
    kb.button(text=MENU_FOCUS)
    kb.button(text=MENU_PROGRESS)
    kb.button(text=MENU_SUGGEST)
    kb.button(text=MENU_TEMPLATES)

    # 3x2 grid
    kb.adjust(2, 2, 2)

    return kb.as_markup(resize_keyboard=True, one_time_keyboard=False)


def cancel_kb(prefix: str = "cancel") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Cancel", callback_data=prefix)
    kb.adjust(1)
    return kb.as_markup()


def skip_cancel_kb(skip_data: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Skip", callback_data=skip_data)
    kb.button(text="Cancel", callback_data="cancel")
    kb.adjust(2)
    return kb.as_markup()
