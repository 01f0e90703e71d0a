from __future__ import annotations

from typing import Optional

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message

from taskdeck.domain.gamification.service import GamificationService
from taskdeck.ui.telegram.handlers._common import require_session
from taskdeck.ui.telegram.keyboards.common import MENU_PROGRESS
from taskdeck.ui.telegram.session import UserSession
from taskdeck.ui.telegram.texts.render import progress_report, unlocked_banner

router = Router()


@router.message(Command("progress"))
@router.message(F.text == MENU_PROGRESS)
async def progress_cmd(message: Message, session: Optional[UserSession], gamification: GamificationService):
    if not await require_session(message, session):
        return
    report = await gamification.report(session.user.id, session.tasks.tasks)
    await message.answer(progress_report(report))
    banner = unlocked_banner(report)
    if banner:
        await message.answer(banner)
