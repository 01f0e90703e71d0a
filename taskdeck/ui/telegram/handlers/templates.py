from __future__ import annotations

from typing import Optional

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from taskdeck.domain.tasks.models import Category, Priority
from taskdeck.domain.templates.models import TemplateDraft
from taskdeck.domain.templates.service import TemplateService
from taskdeck.ui.telegram.handlers._common import require_session, show_card
from taskdeck.ui.telegram.keyboards.common import MENU_TEMPLATES, cancel_kb, skip_cancel_kb
from taskdeck.ui.telegram.keyboards.tasks import category_kb, priority_kb
from taskdeck.ui.telegram.keyboards.templates import templates_kb
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.states.flows import TemplateFlow
from taskdeck.ui.telegram.texts import messages
from taskdeck.ui.telegram.texts.render import templates_text

router = Router()


def _optional_text(text: Optional[str]) -> str:
    text = (text or "").strip()
    return "" if text == "-" else text


async def _show_templates(message: Message, session: UserSession, template_service: TemplateService, query: str = "") -> None:
    templates = await template_service.list_templates(session.user.id, query)
    await message.answer(templates_text(templates), reply_markup=templates_kb(templates))


@router.message(Command("templates"))
@router.message(F.text == MENU_TEMPLATES)
async def templates_cmd(
    message: Message,
    state: FSMContext,
    session: Optional[UserSession],
    template_service: TemplateService,
    command: Optional[CommandObject] = None,
):
    """/templates [search text]"""
    await state.clear()
    if not await require_session(message, session):
        return
    query = (command.args or "").strip() if command else ""
    await _show_templates(message, session, template_service, query)


@router.callback_query(F.data.startswith("tp:use:"))
async def use_template(cb: CallbackQuery, session: Optional[UserSession], template_service: TemplateService, timezone: str):
    if not await require_session(cb, session):
        return
    res = await template_service.create_from_template(session.tasks, cb.data.split(":", 2)[2])
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Task created from template.")
    await show_card(cb, session, res.value, timezone)


@router.callback_query(F.data.startswith("tp:del:"))
async def delete_template(cb: CallbackQuery, session: Optional[UserSession], template_service: TemplateService):
    if not await require_session(cb, session):
        return
    res = await template_service.delete(session.user.id, cb.data.split(":", 2)[2])
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    await cb.answer("Template deleted.")
    await _show_templates(cb.message, session, template_service)


# ---- create flow ----

@router.callback_query(F.data == "tp:new")
async def new_template(cb: CallbackQuery, state: FSMContext, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    await cb.answer()
    await state.clear()
    await state.set_state(TemplateFlow.name)
    await cb.message.answer(messages.ASK_TEMPLATE_NAME, reply_markup=cancel_kb())


@router.message(TemplateFlow.name)
async def template_name(message: Message, state: FSMContext):
    name = (message.text or "").strip()
    if not name:
        await message.answer(messages.ASK_TEMPLATE_NAME, reply_markup=cancel_kb())
        return
    await state.update_data(name=name)
    await state.set_state(TemplateFlow.description)
    await message.answer(messages.ASK_TEMPLATE_DESCRIPTION, reply_markup=cancel_kb())


@router.message(TemplateFlow.description)
async def template_description(message: Message, state: FSMContext):
    await state.update_data(description=_optional_text(message.text))
    await state.set_state(TemplateFlow.priority)
    await message.answer(messages.ASK_PRIORITY, reply_markup=priority_kb("tpl:pri"))


@router.callback_query(TemplateFlow.priority, F.data.startswith("tpl:pri:"))
async def template_priority(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.update_data(priority=cb.data.split(":", 2)[2])
    await state.set_state(TemplateFlow.category)
    await cb.message.answer(messages.ASK_CATEGORY, reply_markup=category_kb("tpl:cat"))


@router.callback_query(TemplateFlow.category, F.data.startswith("tpl:cat:"))
async def template_category(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.update_data(category=cb.data.split(":", 2)[2])
    await state.set_state(TemplateFlow.estimate)
    await cb.message.answer(messages.ASK_TEMPLATE_ESTIMATE, reply_markup=skip_cancel_kb("tpl:est:skip"))


@router.callback_query(TemplateFlow.estimate, F.data == "tpl:est:skip")
async def template_estimate_skip(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.update_data(estimated_minutes=None)
    await state.set_state(TemplateFlow.steps)
    await cb.message.answer(messages.ASK_TEMPLATE_STEPS, reply_markup=cancel_kb())


@router.message(TemplateFlow.estimate)
async def template_estimate(message: Message, state: FSMContext):
    raw = (message.text or "").strip()
    if not raw.isdigit():
        await message.answer(messages.ASK_TEMPLATE_ESTIMATE, reply_markup=skip_cancel_kb("tpl:est:skip"))
        return
    await state.update_data(estimated_minutes=int(raw))
    await state.set_state(TemplateFlow.steps)
    await message.answer(messages.ASK_TEMPLATE_STEPS, reply_markup=cancel_kb())


@router.message(TemplateFlow.steps)
async def template_steps(
    message: Message,
    state: FSMContext,
    session: Optional[UserSession],
    template_service: TemplateService,
):
    if not await require_session(message, session):
        await state.clear()
        return
    data = await state.get_data()
    raw = _optional_text(message.text)
    draft = TemplateDraft(
        name=data.get("name", ""),
        description=data.get("description", ""),
        priority=Priority(data.get("priority", Priority.MEDIUM.value)),
        category=Category(data.get("category", Category.OTHER.value)),
        estimated_minutes=data.get("estimated_minutes"),
        steps=raw.splitlines() if raw else [],
    )
    res = await template_service.create(session.user.id, draft)
    if not res.success:
        # keep the collected answers so the user can fix the steps or /cancel
        await message.answer(res.error, reply_markup=cancel_kb())
        return
    await state.clear()
    await message.answer(f"Template saved: {res.value.name}")
    await _show_templates(message, session, template_service)
