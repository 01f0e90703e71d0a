from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from taskdeck.ui.telegram.session import SessionRegistry

logger = logging.getLogger(__name__)


def _user_id(event: TelegramObject) -> Optional[int]:
    if isinstance(event, (Message, CallbackQuery)) and event.from_user:
        return event.from_user.id
    return None


class OwnerOnlyMiddleware(BaseMiddleware):
    """Optional allow-list; owner_id == 0 lets everybody through."""

    def __init__(self, owner_id: int) -> None:
        self._owner_id = owner_id

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        if self._owner_id <= 0:
            return await handler(event, data)

        user_id = _user_id(event)
        if user_id != self._owner_id:
            logger.info("Blocked user_id=%s", user_id)
            if isinstance(event, Message):
                await event.answer("Not authorized.")
            elif isinstance(event, CallbackQuery):
                await event.answer("Not authorized.", show_alert=True)
            return None

        return await handler(event, data)


class SessionMiddleware(BaseMiddleware):
    """
    Inject the caller's UserSession as `session` (None when not signed in).
    Handlers that need one use `require_session`.
    """

    def __init__(self, sessions: SessionRegistry) -> None:
        self._sessions = sessions

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user_id = _user_id(event)
        data["session"] = self._sessions.get(user_id) if user_id is not None else None
        return await handler(event, data)
