"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All settings overridable via EQUIPTRACK_* environment variables or .env
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every setting: a local SQLite file works out-of-the-box
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="EQUIPTRACK_", case_sensitive=False,
    )

    # Local persistent storage (slots + photo blobs)
    database_url: str = "sqlite+aiosqlite:///./equiptrack.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_sqlite_url(cls, v: str) -> str:
        """Plain sqlite:// URLs need the async driver."""
        if isinstance(v, str) and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    # Named slots
    ledger_slot: str = "equipmentData"
    preferences_slot: str = "equipmentPreferences"

    # Ledger behaviour
    history_limit: int = Field(10, ge=1, le=100)
    duplicate_min_length: int = Field(3, ge=1)

    # Photo store
    photo_store_timeout_seconds: float = Field(10.0, gt=0)
    photo_max_bytes: int = 8 * 1024 * 1024

    # Sharing handshake (simulated owner approval)
    approval_delay_seconds: float = Field(3.0, ge=0)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
