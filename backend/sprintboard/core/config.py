from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- DB ---
    DATABASE_URL: str = "sqlite:///./sprintboard.sqlite"
    DB_TIMEOUT_S: int = 5

    # --- JWT / session cookie ---
    JWT_SECRET: str = "change-me-sprintboard-dev-secret"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_MIN: int = 10080  # 7 days
    SESSION_COOKIE_NAME: str = "sl_session"
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"
    LOGIN_URL: str = "/login"

    # --- Calendar ---
    # Every "today" in the app is a calendar day in this IANA zone
    TIMEZONE: str = "UTC"
    TEAM_TOTALS_SCOPE: Literal["today", "all_time"] = "today"

    # --- Run rules ---
    DAILY_RUN_CAP: int = 10
    MIN_DURATION_MS: int = 50
    MAX_DURATION_MS: int = 600_000

    BALANCE_QUANTUM_MS: int = 10

    LOG_LEVEL: str = "INFO"

    # Also read from .env
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("TIMEZONE")
    @classmethod
    def _known_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown IANA timezone: {v}") from exc
        return v


# Global instance; create_app() accepts an explicit one for tests/scripts
settings = Settings()
