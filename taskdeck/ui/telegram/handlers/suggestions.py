from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from taskdeck.domain.suggestions.service import SuggestionService
from taskdeck.ui.telegram.handlers._common import require_session
from taskdeck.ui.telegram.keyboards.common import MENU_SUGGEST, cancel_kb
from taskdeck.ui.telegram.keyboards.suggestions import suggestions_kb
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.states.flows import SuggestFlow
from taskdeck.ui.telegram.texts import messages
from taskdeck.ui.telegram.texts.render import suggestions_text

router = Router()


async def _suggest(message: Message, session: UserSession, suggestion_service: SuggestionService, prompt: str, timezone: str) -> None:
    await message.answer("Thinking…")
    result = await suggestion_service.suggest(prompt, session.tasks.tasks)
    if result.error:
        await message.answer(result.error)
        return
    # a parse failure comes back as a placeholder that must not be added
    session.suggestions = [] if result.parse_failed else list(result.suggestions)
    await message.answer(
        suggestions_text(result.suggestions, result.explanation, ZoneInfo(timezone)),
        reply_markup=suggestions_kb(session.suggestions),
    )


@router.message(Command("suggest"))
@router.message(F.text == MENU_SUGGEST)
async def suggest_cmd(
    message: Message,
    state: FSMContext,
    session: Optional[UserSession],
    suggestion_service: SuggestionService,
    timezone: str,
    command: Optional[CommandObject] = None,
):
    await state.clear()
    if not await require_session(message, session):
        return
    if not suggestion_service.enabled:
        await message.answer("AI suggestions are not configured.")
        return
    prompt = (command.args or "").strip() if command else ""
    if prompt:
        await _suggest(message, session, suggestion_service, prompt, timezone)
        return
    await state.set_state(SuggestFlow.prompt)
    await message.answer(messages.ASK_SUGGEST_PROMPT, reply_markup=cancel_kb())


@router.message(SuggestFlow.prompt)
async def suggest_prompt(
    message: Message,
    state: FSMContext,
    session: Optional[UserSession],
    suggestion_service: SuggestionService,
    timezone: str,
):
    await state.clear()
    if not await require_session(message, session):
        return
    await _suggest(message, session, suggestion_service, message.text or "", timezone)


@router.callback_query(F.data.startswith("sg:add:"))
async def accept_one(cb: CallbackQuery, session: Optional[UserSession], suggestion_service: SuggestionService):
    if not await require_session(cb, session):
        return
    idx = cb.data.split(":", 2)[2]
    if not idx.isdigit() or int(idx) >= len(session.suggestions) or session.suggestions[int(idx)] is None:
        await cb.answer("Suggestion no longer available.", show_alert=True)
        return
    res = await suggestion_service.accept(session.tasks, session.suggestions[int(idx)])
    if not res.success:
        await cb.answer(res.error, show_alert=True)
        return
    # keep indices stable for the remaining buttons
    session.suggestions[int(idx)] = None
    await cb.answer(f"Added: {res.value.title}")


@router.callback_query(F.data == "sg:all")
async def accept_all(cb: CallbackQuery, session: Optional[UserSession], suggestion_service: SuggestionService):
    if not await require_session(cb, session):
        return
    added = 0
    for i, draft in enumerate(session.suggestions):
        if draft is None:
            continue
        res = await suggestion_service.accept(session.tasks, draft)
        if not res.success:
            await cb.answer(f"Added {added}. {res.error}", show_alert=True)
            return
        session.suggestions[i] = None
        added += 1
    await cb.answer(f"Added {added} task(s).")


@router.callback_query(F.data == "sg:clear")
async def dismiss(cb: CallbackQuery, session: Optional[UserSession]):
    if not await require_session(cb, session):
        return
    session.suggestions = []
    await cb.answer("Dismissed.")
    await cb.message.edit_reply_markup(reply_markup=None)
