"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./queue.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 3000

    # ── Daily reset ───────────────────────────────────────────────────────
    TIMEZONE: str = "Asia/Ho_Chi_Minh"          # Local midnight is computed here
    DAILY_RESET_ENABLED: bool = True             # Timer trigger; lazy fallback always runs

    # ── Calling / display ─────────────────────────────────────────────────
    RECALL_WINDOW_SECONDS: int = 8               # Recall flag visible on displays
    CALL_DISPLAY_FRESHNESS_SECONDS: int = 8      # Keep last call on screen after queue drains
    MAX_SEQUENCE: int = 999                      # Tickets per counter per day (3-digit display)

    # ── Admin ─────────────────────────────────────────────────────────────
    WIPE_CONFIRMATION_TOKEN: str = "YES"
    HISTORY_DEFAULT_LIMIT: int = 100

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None                # Defaults to <repo>/logs

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
