from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import ExceptionTypeFilter
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent

from taskdeck.config import load_settings
from taskdeck.domain.auth.service import AuthService
from taskdeck.domain.calendar.service import CalendarService
from taskdeck.domain.common.time import to_iso
from taskdeck.domain.gamification.service import GamificationService
from taskdeck.domain.suggestions.service import SuggestionService
from taskdeck.domain.templates.service import TemplateService
from taskdeck.infra.auth.local_auth import LocalAuthProvider
from taskdeck.infra.calendar.google_calendar import GoogleCalendarGateway
from taskdeck.infra.clock.system_clock import SystemClock
from taskdeck.infra.db.connection import Database
from taskdeck.infra.db.repo.focus_log_sqlite import FocusLogSqliteRepo
from taskdeck.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from taskdeck.infra.db.repo.templates_sqlite import TemplatesSqliteRepo
from taskdeck.infra.db.schema_version import apply_migrations
from taskdeck.infra.ids.uuid_gen import UuidGenerator
from taskdeck.infra.llm.openai_provider import OpenAISuggestionProvider
from taskdeck.infra.scheduler.ticker import FocusTicker
from taskdeck.ui.telegram.handlers.auth import router as auth_router
from taskdeck.ui.telegram.handlers.calendar import router as calendar_router
from taskdeck.ui.telegram.handlers.cancel import router as cancel_router
from taskdeck.ui.telegram.handlers.fallback import router as fallback_router
from taskdeck.ui.telegram.handlers.focus import router as focus_router
from taskdeck.ui.telegram.handlers.progress import router as progress_router
from taskdeck.ui.telegram.handlers.start import router as start_router
from taskdeck.ui.telegram.handlers.suggestions import router as suggestions_router
from taskdeck.ui.telegram.handlers.tasks import router as tasks_router
from taskdeck.ui.telegram.handlers.templates import router as templates_router
from taskdeck.ui.telegram.handlers.views import router as views_router
from taskdeck.ui.telegram.middlewares.auth import OwnerOnlyMiddleware, SessionMiddleware
from taskdeck.ui.telegram.middlewares.di import DIMiddleware, Services
from taskdeck.ui.telegram.session import SessionRegistry

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s'


async def main() -> None:
    """
    Entry point for the Telegram bot.

    Only run ONE instance per bot token; a second poller makes Telegram
    answer with TelegramConflictError ("terminated by other getUpdates request").
    """
    settings = load_settings()

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)
    logger.info("Bot starting - PID: %s", os.getpid())

    repo_root = Path(__file__).resolve().parents[3]  # .../taskdeck/ui/telegram/main.py -> repo root

    # --- DB path: one place, always absolute, ensure dir exists ---
    db_path = settings.db_path
    if not db_path.is_absolute():
        db_path = repo_root / db_path
    db = Database(str(db_path))
    db.ensure_parent_dir()
    logger.info("DB_PATH: %s", db_path)

    clock = SystemClock(settings.timezone)
    ids = UuidGenerator()

    # --- migrations ---
    applied = await apply_migrations(db, now_iso=to_iso(clock.now()))
    logger.info("Applied %s migration(s)", applied)

    # --- services ---
    tasks_repo = TasksSqliteRepo(db)
    focus_log = FocusLogSqliteRepo(db)
    ticker = FocusTicker()
    sessions = SessionRegistry(
        tasks_repo,
        focus_log,
        clock,
        ids,
        ticker,
        focus_default_minutes=settings.focus_default_minutes,
    )

    provider = None
    if settings.openai_api_key:
        provider = OpenAISuggestionProvider(settings.openai_api_key, model=settings.openai_model)
    else:
        logger.warning("OPENAI_API_KEY not set; AI suggestions are disabled")

    services = Services(
        auth=AuthService(LocalAuthProvider(db, clock, ids)),
        sessions=sessions,
        suggestions=SuggestionService(provider, clock),
        calendar=CalendarService(
            GoogleCalendarGateway(calendar_id=settings.google_calendar_id),
            clock,
            settings.timezone,
            default_token=settings.google_calendar_token,
        ),
        templates=TemplateService(TemplatesSqliteRepo(db), clock, ids),
        gamification=GamificationService(focus_log, clock),
        ticker=ticker,
        clock=clock,
        timezone=settings.timezone,
    )

    # --- bot/dispatcher ---
    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = Dispatcher(storage=MemoryStorage())

    # --- middlewares ---
    for observer in (dp.message, dp.callback_query):
        observer.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))
        observer.middleware(DIMiddleware(services))
        observer.middleware(SessionMiddleware(sessions))

    # --- routers ---
    dp.include_router(cancel_router)
    dp.include_router(start_router)
    dp.include_router(auth_router)
    dp.include_router(views_router)
    dp.include_router(tasks_router)
    dp.include_router(focus_router)
    dp.include_router(suggestions_router)
    dp.include_router(templates_router)
    dp.include_router(progress_router)
    dp.include_router(calendar_router)
    dp.include_router(fallback_router)  # must stay last

    @dp.error(ExceptionTypeFilter(TelegramBadRequest))
    async def handle_bad_request(event: ErrorEvent) -> None:
        """Ignore stale callback queries (e.g. after a restart) and no-op edits."""
        msg = str(event.exception).lower()
        if (
            "query is too old" in msg
            or "query id is invalid" in msg
            or "response timeout expired" in msg
            or "message is not modified" in msg
        ):
            logger.debug("Ignoring Telegram bad request: %s", event.exception)
            return
        raise event.exception

    logger.info("Starting polling")
    try:
        await dp.start_polling(bot)
    finally:
        await ticker.stop_all()
        await bot.session.close()
        logger.info("Bot shutdown complete - PID: %s", os.getpid())


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
