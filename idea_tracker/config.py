"""
Business Ideas Tracker – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "Business Ideas Tracker"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./business_ideas.db"

    # ── Sessions ──
    SESSION_COOKIE_NAME: str = "session_id"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24
    SESSION_COOKIE_SECURE: bool = False

    # ── Accounts ──
    AUTO_LOGIN_AFTER_REGISTER: bool = True

    # ── Paths ──
    TEMPLATES_DIR: str = str(PACKAGE_DIR / "templates")
    STATIC_DIR: str = str(PACKAGE_DIR / "static")


settings = Settings()
