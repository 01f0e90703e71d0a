from __future__ import annotations

from typing import Optional

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from taskdeck.ui.telegram.keyboards.common import main_menu_kb
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.texts import messages

router = Router()


async def send_mainmenu(message: Message, session: Optional[UserSession]) -> None:
    if session is None:
        await message.answer(messages.WELCOME)
        return
    pending = sum(1 for t in session.tasks.tasks if not t.is_completed)
    await message.answer(
        f"Hi {session.user.display_name}! {pending} pending task(s).\n{messages.MENU}",
        reply_markup=main_menu_kb(),
    )


@router.message(CommandStart())
async def start_cmd(message: Message, state: FSMContext, session: Optional[UserSession]):
    await state.clear()
    await send_mainmenu(message, session)


@router.message(Command("menu"))
async def menu_cmd(message: Message, state: FSMContext, session: Optional[UserSession]):
    await state.clear()
    await send_mainmenu(message, session)


@router.message(Command("help"))
async def help_cmd(message: Message):
    await message.answer(
        "/add [title] · /tasks · /view list|grid|calendar|matrix|analytics\n"
        "/filter · /search text · /focus [minutes] · /focus short 10 · /suggest prompt\n"
        "/templates · /progress · /calendar_connect [token] · /calendar_disconnect\n"
        "/signup · /login · /logout · /reset · /cancel"
    )
