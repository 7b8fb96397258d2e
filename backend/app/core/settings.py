"""Application settings loaded from environment / .env file.

Config precedence (highest to lowest):
    1. Environment variables
    2. ``.env`` file in project root
    3. Defaults defined in this module

The JWT signing secret is never exposed in ``safe_dump()`` or logs.
"""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is three levels up from this file (backend/app/core/settings.py)
_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_DB_PATH = str(_PROJECT_ROOT / "data" / "app.db")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
    )

    api_host: str = "127.0.0.1"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Database — override via APP_DB_PATH env var
    app_db_path: str = _DEFAULT_DB_PATH

    @property
    def database_url(self) -> str:
        """SQLite connection URL derived from ``app_db_path``."""
        return f"sqlite:///{self.app_db_path}"

    # Identity provider tokens
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"

    # Vote transaction retry budget
    vote_max_attempts: int = Field(default=5, ge=1)
    vote_retry_backoff_seconds: float = Field(default=0.01, ge=0)

    # Trending recompute job
    trending_recompute_enabled: bool = True
    trending_recompute_interval_seconds: int = Field(default=3600, ge=1)
    trending_window_hours: int = Field(default=72, ge=1)
    trending_batch_limit: int = Field(default=500, ge=1)

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
        """Return settings dict with secrets masked — safe for logging."""
        return {
            "api_host": self.api_host,
            "api_port": self.api_port,
            "debug": self.debug,
            "log_level": self.log_level,
            "app_db_path": self.app_db_path,
            "jwt_algorithm": self.jwt_algorithm,
            "jwt_secret_key": "***",
            "vote_max_attempts": self.vote_max_attempts,
            "trending_recompute_enabled": self.trending_recompute_enabled,
            "trending_recompute_interval_seconds": (
                self.trending_recompute_interval_seconds
            ),
            "trending_window_hours": self.trending_window_hours,
            "trending_batch_limit": self.trending_batch_limit,
        }


settings = Settings()
