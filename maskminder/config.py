"""Configuration management from environment variables."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from maskminder.utils.constants import (
    COMPLIANCE_WINDOW_DAYS,
    DEFAULT_CHECK_INTERVAL_MINUTES,
    DEFAULT_SNOOZE_HOURS,
    DEFAULT_TIMEZONE,
    STREAK_LOOKBACK_DAYS,
)

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_CHAT_ID: str = os.getenv("TELEGRAM_CHAT_ID", "")

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/maskminder.db"))

    # Local timezone that defines "today"
    TIMEZONE: str = os.getenv("TIMEZONE", DEFAULT_TIMEZONE)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Engine
    CHECK_INTERVAL_MINUTES: int = int(
        os.getenv("CHECK_INTERVAL_MINUTES", str(DEFAULT_CHECK_INTERVAL_MINUTES))
    )
    DEFAULT_SNOOZE_HOURS: int = int(
        os.getenv("DEFAULT_SNOOZE_HOURS", str(DEFAULT_SNOOZE_HOURS))
    )

    # Analytics
    STREAK_LOOKBACK_DAYS: int = int(
        os.getenv("STREAK_LOOKBACK_DAYS", str(STREAK_LOOKBACK_DAYS))
    )
    COMPLIANCE_WINDOW_DAYS: int = int(
        os.getenv("COMPLIANCE_WINDOW_DAYS", str(COMPLIANCE_WINDOW_DAYS))
    )

    @classmethod
    def chat_id(cls) -> int:
        """The chat that receives reminders."""
        return int(cls.TELEGRAM_CHAT_ID)

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.TELEGRAM_BOT_TOKEN:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        if not cls.TELEGRAM_CHAT_ID:
            raise ValueError("TELEGRAM_CHAT_ID environment variable is required")

        try:
            cls.chat_id()
        except ValueError:
            raise ValueError("TELEGRAM_CHAT_ID must be a numeric chat id") from None

        try:
            ZoneInfo(cls.TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown TIMEZONE: {cls.TIMEZONE}") from None

        if cls.CHECK_INTERVAL_MINUTES <= 0:
            raise ValueError("CHECK_INTERVAL_MINUTES must be positive")

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
