"""Application settings loaded from environment / .env file.

Config precedence (highest to lowest):
    1. Environment variables
    2. ``.env`` file in project root
    3. Defaults defined in this module
"""

from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is three levels up from this file (backend/app/core/settings.py)
_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_DB_PATH = str(_PROJECT_ROOT / "data" / "trenz.db")

VALID_RANKING_MODES = ("sequential", "competition")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
    )

    api_host: str = "127.0.0.1"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Database, override via APP_DB_PATH env var
    app_db_path: str = _DEFAULT_DB_PATH
    app_db_busy_timeout_ms: int = 5000

    @property
    def database_url(self) -> str:
        """SQLite connection URL derived from ``app_db_path``."""
        return f"sqlite:///{self.app_db_path}"

    # Leaderboard
    leaderboard_ranking: str = "sequential"
    leaderboard_max_limit: int = 500

    # Trends
    trend_default_duration_days: int = 14
    trend_expiry_enabled: bool = False
    trend_expiry_interval_seconds: int = 300

    @field_validator("leaderboard_ranking")
    @classmethod
    def _validate_ranking(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in VALID_RANKING_MODES:
            msg = (
                f"Unknown leaderboard ranking '{v}'. "
                f"Expected one of: {', '.join(VALID_RANKING_MODES)}"
            )
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _validate_db_path(self) -> "Settings":
        """Ensure the DB path parent directory exists or can be created."""
        parent = Path(self.app_db_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = (
                f"Cannot create database directory '{parent}': {exc}. "
                f"Set APP_DB_PATH to a writable location."
            )
            raise ValueError(msg) from exc
        return self

    def safe_dump(self) -> dict[str, object]:
        """Return settings dict suitable for logging."""
        return {
            "api_host": self.api_host,
            "api_port": self.api_port,
            "debug": self.debug,
            "log_level": self.log_level,
            "app_db_path": self.app_db_path,
            "app_db_busy_timeout_ms": self.app_db_busy_timeout_ms,
            "leaderboard_ranking": self.leaderboard_ranking,
            "leaderboard_max_limit": self.leaderboard_max_limit,
            "trend_default_duration_days": self.trend_default_duration_days,
            "trend_expiry_enabled": self.trend_expiry_enabled,
        }


settings = Settings()
