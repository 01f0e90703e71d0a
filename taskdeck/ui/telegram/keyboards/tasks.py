from __future__ import annotations

from typing import Dict, Optional, Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from taskdeck.domain.tasks.models import ALL, Category, FilterCriteria, Priority, Quadrant, Task, TaskStatus, ViewType

# callback_data is limited to 64 bytes, so quadrants travel as two letters
QUADRANT_CODES: Dict[Quadrant, str] = {
    Quadrant.URGENT_IMPORTANT: "ui",
    Quadrant.URGENT_NOT_IMPORTANT: "un",
    Quadrant.NOT_URGENT_IMPORTANT: "ni",
    Quadrant.NOT_URGENT_NOT_IMPORTANT: "nn",
}
QUADRANT_BY_CODE = {v: k for k, v in QUADRANT_CODES.items()}

QUADRANT_LABELS: Dict[Quadrant, str] = {
    Quadrant.URGENT_IMPORTANT: "Do first",
    Quadrant.URGENT_NOT_IMPORTANT: "Delegate",
    Quadrant.NOT_URGENT_IMPORTANT: "Schedule",
    Quadrant.NOT_URGENT_NOT_IMPORTANT: "Eliminate",
}

MAX_LIST_BUTTONS = 30


def _short(title: str, limit: int = 40) -> str:
    return title if len(title) <= limit else title[: limit - 1] + "…"


def tasks_list_kb(tasks: Sequence[Task]) -> Optional[InlineKeyboardMarkup]:
    if not tasks:
        return None
    kb = InlineKeyboardBuilder()
    for t in tasks[:MAX_LIST_BUTTONS]:
        mark = "✅" if t.is_completed else "⬜"
        kb.button(text=f"{mark} {_short(t.title)}", callback_data=f"t:open:{t.id}")
    kb.adjust(1)
    return kb.as_markup()


def task_card_kb(task: Task, view: ViewType) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Reopen" if task.is_completed else "Done", callback_data=f"t:tog:{task.id}")
    kb.button(text="Edit title", callback_data=f"t:edit:title:{task.id}")
    kb.button(text="Description", callback_data=f"t:edit:desc:{task.id}")
    kb.button(text="Due date", callback_data=f"t:edit:due:{task.id}")
    kb.button(text="Priority", callback_data=f"t:pick:pri:{task.id}")
    kb.button(text="Category", callback_data=f"t:pick:cat:{task.id}")
    kb.button(text="⬆️", callback_data=f"t:up:{task.id}")
    kb.button(text="⬇️", callback_data=f"t:down:{task.id}")
    sizes = [2, 2, 2, 2]

    if view == ViewType.GRID:
        target = "Completed" if task.status == TaskStatus.PENDING else "Pending"
        kb.button(text=f"Move to {target}", callback_data=f"t:kb:{task.id}")
        sizes.append(1)
    if view == ViewType.MATRIX and not task.is_completed:
        for q, code in QUADRANT_CODES.items():
            if q != task.quadrant:
                kb.button(text=QUADRANT_LABELS[q], callback_data=f"t:q:{code}:{task.id}")
        sizes.append(3)

    kb.button(text="Share", callback_data=f"t:share:{task.id}")
    kb.button(text="Calendar", callback_data=f"t:cal:{task.id}")
    kb.button(text="Focus", callback_data=f"t:focus:{task.id}")
    kb.button(text="Delete", callback_data=f"t:del:{task.id}")
    sizes.extend([2, 2])
    kb.adjust(*sizes)
    return kb.as_markup()


def unshare_kb(task: Task) -> Optional[InlineKeyboardMarkup]:
    refs = sorted(task.shared_with)
    if not refs:
        return None
    kb = InlineKeyboardBuilder()
    for i, ref in enumerate(refs):
        kb.button(text=f"Remove {_short(ref, 30)}", callback_data=f"t:unsh:{i}:{task.id}")
    kb.adjust(1)
    return kb.as_markup()


def delete_confirm_kb(task_id: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Yes, delete", callback_data=f"t:delok:{task_id}")
    kb.button(text="Keep", callback_data=f"t:open:{task_id}")
    kb.adjust(2)
    return kb.as_markup()


def priority_kb(prefix: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for p in Priority:
        kb.button(text=p.value.title(), callback_data=f"{prefix}:{p.value}")
    kb.adjust(3)
    return kb.as_markup()


def category_kb(prefix: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for c in Category:
        kb.button(text=c.value.title(), callback_data=f"{prefix}:{c.value}")
    kb.adjust(3, 2)
    return kb.as_markup()


def view_kb(current: ViewType) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for v in ViewType:
        label = v.value.title()
        kb.button(text=f"• {label}" if v == current else label, callback_data=f"v:{v.value}")
    kb.button(text="Filter", callback_data="f:menu")
    kb.adjust(3, 2, 1)
    return kb.as_markup()


def _choice(label: str, value: str, current: str) -> str:
    return f"• {label}" if value == current else label


def filter_kb(criteria: FilterCriteria) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for value in [ALL] + [s.value for s in TaskStatus]:
        kb.button(text=_choice(value.title(), value, criteria.status), callback_data=f"f:status:{value}")
    for value in [ALL] + [p.value for p in Priority]:
        kb.button(text=_choice(value.title(), value, criteria.priority), callback_data=f"f:pri:{value}")
    for value in [ALL] + [c.value for c in Category]:
        kb.button(text=_choice(value.title(), value, criteria.category), callback_data=f"f:cat:{value}")
    kb.button(text="Clear filters", callback_data="f:clear")
    kb.button(text="Show tasks", callback_data="f:done")
    kb.adjust(3, 4, 3, 3, 2)
    return kb.as_markup()


def month_nav_kb(prev_key: str, next_key: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="◀️", callback_data=f"cal:{prev_key}")
    kb.button(text="Today", callback_data="cal:today")
    kb.button(text="▶️", callback_data=f"cal:{next_key}")
    kb.adjust(3)
    return kb.as_markup()
