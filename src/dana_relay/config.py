from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field

TELEGRAM_API_BASE_URL = "https://api.telegram.org"


def _env(name: str, default: str | None = None):
    # Read at construction time so a cache_clear() picks up a changed environment
    return Field(default_factory=lambda: os.getenv(name, default))


class Settings(BaseModel):
    # --- Telegram bot credentials ---
    # Both are required at request time; a missing value is reported as a
    # server configuration error, never at startup.
    telegram_bot_token: str | None = _env("TELEGRAM_BOT_TOKEN")
    telegram_chat_id: str | None = _env("TELEGRAM_CHAT_ID")

    # Override for local stubs of the Bot API
    telegram_api_base_url: str = _env("TELEGRAM_API_BASE_URL", TELEGRAM_API_BASE_URL)
    telegram_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("TELEGRAM_TIMEOUT_SECONDS", "5"))
    )

    # "development" exposes raw error messages in 500 responses
    environment: str = _env("NODE_ENV", "production")

    log_level: str = _env("LOG_LEVEL", "INFO")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def has_telegram_credentials(self) -> bool:
        return bool(self.telegram_bot_token) and bool(self.telegram_chat_id)

    def send_message_url(self) -> str:
        base = self.telegram_api_base_url.rstrip("/")
        return f"{base}/bot{self.telegram_bot_token}/sendMessage"


@lru_cache
def get_settings() -> Settings:
    return Settings()
