from __future__ import annotations

from aiogram import F, Router
from aiogram.types import Message

# included last so every other router gets the update first
router = Router()


@router.message(F.text.startswith("/"))
async def unknown_cmd(message: Message):
    await message.answer("Unknown command. See /help.")
