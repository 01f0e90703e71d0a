from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from taskdeck.domain.auth.service import AuthService
from taskdeck.domain.calendar.service import CalendarService
from taskdeck.domain.common.ports import Clock
from taskdeck.domain.gamification.service import GamificationService
from taskdeck.domain.suggestions.service import SuggestionService
from taskdeck.domain.templates.service import TemplateService
from taskdeck.infra.scheduler.ticker import FocusTicker
from taskdeck.ui.telegram.session import SessionRegistry


@dataclass(frozen=True)
class Services:
    auth: AuthService
    sessions: SessionRegistry
    suggestions: SuggestionService
    calendar: CalendarService
    templates: TemplateService
    gamification: GamificationService
    ticker: FocusTicker
    clock: Clock
    timezone: str


class DIMiddleware(BaseMiddleware):
    """
    Inject dependencies to handlers via `data` dict.

    Handlers can request args by name, e.g.
      async def handler(message: Message, auth_service: AuthService, clock: Clock): ...
    """

    def __init__(self, services: Services) -> None:
        self._s = services

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        # keep names stable across the project
        data["auth_service"] = self._s.auth
        data["sessions"] = self._s.sessions
        data["suggestion_service"] = self._s.suggestions
        data["calendar_service"] = self._s.calendar
        data["template_service"] = self._s.templates
        data["gamification"] = self._s.gamification
        data["ticker"] = self._s.ticker
        data["clock"] = self._s.clock
        data["timezone"] = self._s.timezone

        return await handler(event, data)
