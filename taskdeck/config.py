from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    bot_token: str
    owner_telegram_id: int
    timezone: str
    db_path: Path
    openai_api_key: Optional[str]
    openai_model: str
    google_calendar_token: Optional[str]
    google_calendar_id: str
    focus_default_minutes: int
    log_level: str


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer in %s, using default %s", name, default)
        return default


def _opt_env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def load_settings() -> Settings:
    load_dotenv()

    bot_token = os.getenv("BOT_TOKEN", "").strip()
    if not bot_token:
        raise RuntimeError("BOT_TOKEN missing in .env")

    focus_minutes = _int_env("FOCUS_DEFAULT_MINUTES", 25)
    if focus_minutes <= 0:
        focus_minutes = 25

    # db_path may still be relative; the entry point resolves it
    return Settings(
        bot_token=bot_token,
        owner_telegram_id=max(0, _int_env("OWNER_TELEGRAM_ID", 0)),
        timezone=os.getenv("TZ", "Europe/Helsinki").strip() or "Europe/Helsinki",
        db_path=Path(os.getenv("DB_PATH", "data/taskdeck.db").strip() or "data/taskdeck.db"),
        openai_api_key=_opt_env("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini",
        google_calendar_token=_opt_env("GOOGLE_CALENDAR_TOKEN"),
        google_calendar_id=os.getenv("GOOGLE_CALENDAR_ID", "primary").strip() or "primary",
        focus_default_minutes=focus_minutes,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
