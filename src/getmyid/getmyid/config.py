"""Application configuration via pydantic-settings.

Reads from environment variables and a .env file in the working directory.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Telegram ---
    bot_token: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    poll_timeout: int = 60

    # --- Storage ---
    users_file: str = "data/users.json"

    # --- Logging ---
    log_dir: str = "logs"
    log_level: str = "DEBUG"
    log_rotation_interval: float = 600.0  # seconds between scheduler ticks
    log_retention_days: int = 7
    log_sweep_window: float = 900.0  # seconds after local midnight

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.log_retention_days)

    @property
    def sweep_window(self) -> timedelta:
        return timedelta(seconds=self.log_sweep_window)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance (created once)."""
    return Settings()
