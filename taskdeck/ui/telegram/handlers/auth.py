from __future__ import annotations

import contextlib

from aiogram import Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from taskdeck.domain.auth.service import AuthService
from taskdeck.ui.telegram.handlers.start import send_mainmenu
from taskdeck.ui.telegram.keyboards.common import cancel_kb
from taskdeck.ui.telegram.session import SessionRegistry
from taskdeck.ui.telegram.states.flows import AuthFlow
from taskdeck.ui.telegram.texts import messages

router = Router()


async def _forget(message: Message) -> None:
    # passwords should not stay in the chat history
    with contextlib.suppress(TelegramBadRequest):
        await message.delete()


# ---- sign up ----

@router.message(Command("signup"))
async def signup_cmd(message: Message, state: FSMContext):
    await state.clear()
    await state.set_state(AuthFlow.signup_email)
    await message.answer(messages.ASK_EMAIL, reply_markup=cancel_kb())


@router.message(AuthFlow.signup_email)
async def signup_email(message: Message, state: FSMContext):
    await state.update_data(email=(message.text or "").strip())
    await state.set_state(AuthFlow.signup_password)
    await message.answer(messages.ASK_PASSWORD, reply_markup=cancel_kb())


@router.message(AuthFlow.signup_password)
async def signup_password(message: Message, state: FSMContext):
    await state.update_data(password=message.text or "")
    await _forget(message)
    await state.set_state(AuthFlow.signup_name)
    await message.answer(messages.ASK_DISPLAY_NAME, reply_markup=cancel_kb())


@router.message(AuthFlow.signup_name)
async def signup_name(message: Message, state: FSMContext, auth_service: AuthService, sessions: SessionRegistry):
    data = await state.get_data()
    await state.clear()
    res = await auth_service.sign_up(message.from_user.id, data.get("email", ""), data.get("password", ""), message.text or "")
    if not res.success:
        await message.answer(f"{res.error}\nTry again with /signup.")
        return
    session = await sessions.open(message.from_user.id, res.user)
    await send_mainmenu(message, session)


# ---- sign in ----

@router.message(Command("login"))
async def login_cmd(message: Message, state: FSMContext):
    await state.clear()
    await state.set_state(AuthFlow.login_email)
    await message.answer(messages.ASK_EMAIL, reply_markup=cancel_kb())


@router.message(AuthFlow.login_email)
async def login_email(message: Message, state: FSMContext):
    await state.update_data(email=(message.text or "").strip())
    await state.set_state(AuthFlow.login_password)
    await message.answer("Password?", reply_markup=cancel_kb())


@router.message(AuthFlow.login_password)
async def login_password(message: Message, state: FSMContext, auth_service: AuthService, sessions: SessionRegistry):
    data = await state.get_data()
    await state.clear()
    await _forget(message)
    res = await auth_service.sign_in(message.from_user.id, data.get("email", ""), message.text or "")
    if not res.success:
        await message.answer(f"{res.error}\nTry again with /login.")
        return
    session = await sessions.open(message.from_user.id, res.user)
    await send_mainmenu(message, session)


@router.message(Command("logout"))
async def logout_cmd(message: Message, state: FSMContext, auth_service: AuthService, sessions: SessionRegistry):
    await state.clear()
    res = auth_service.sign_out(message.from_user.id)
    sessions.close(message.from_user.id)
    await message.answer("Signed out." if res.success else res.error)


# ---- password reset ----

@router.message(Command("reset"))
async def reset_cmd(message: Message, state: FSMContext):
    await state.clear()
    await state.set_state(AuthFlow.reset_email)
    await message.answer(messages.ASK_RESET_EMAIL, reply_markup=cancel_kb())


@router.message(AuthFlow.reset_email)
async def reset_email(message: Message, state: FSMContext, auth_service: AuthService):
    res = await auth_service.reset_password(message.text or "")
    if not res.success:
        await state.clear()
        await message.answer(res.error)
        return
    # no mail delivery in a chat bot: the token goes straight to the requester
    await state.set_state(AuthFlow.reset_token)
    await message.answer(
        f"Reset token (valid for one hour):\n<code>{res.reset_token}</code>\n\n{messages.ASK_RESET_TOKEN}",
        reply_markup=cancel_kb(),
    )


@router.message(AuthFlow.reset_token)
async def reset_token(message: Message, state: FSMContext):
    await state.update_data(token=(message.text or "").strip())
    await state.set_state(AuthFlow.reset_password)
    await message.answer(messages.ASK_NEW_PASSWORD, reply_markup=cancel_kb())


@router.message(AuthFlow.reset_password)
async def reset_password(message: Message, state: FSMContext, auth_service: AuthService):
    data = await state.get_data()
    await state.clear()
    await _forget(message)
    res = await auth_service.confirm_reset(data.get("token", ""), message.text or "")
    if not res.success:
        await message.answer(f"{res.error}\nStart over with /reset.")
        return
    await message.answer("Password updated. Sign in with /login.")
