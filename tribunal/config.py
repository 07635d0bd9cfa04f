"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded in production)
    - get_settings() is cached (lru_cache) — single instance per process
    - punishment_duration_hours covers levels 1–6; level 6 is always permanent (None)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - TRIBUNAL_ env prefix: the service shares hosts with the feed and chat services
    - Duration table is configuration, not code (ADR: unspecified per-level durations)
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="TRIBUNAL_", case_sensitive=False,
    )

    # Database
    database_url: str = (
        "postgresql+asyncpg://tribunal:tribunal@db:5432/tribunal"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Identity
    identity_salt: str = "tribunal-dev-salt"

    # Punishment ladder: hours per level, None = permanent
    punishment_duration_hours: dict[int, int | None] = {
        1: 24,
        2: 48,
        3: 72,
        4: 168,
        5: 720,
        6: None,
    }

    @field_validator("punishment_duration_hours")
    @classmethod
    def validate_durations(cls, v: dict[int, int | None]) -> dict[int, int | None]:
        if set(v) != {1, 2, 3, 4, 5, 6}:
            raise ValueError("punishment_duration_hours must define levels 1-6")
        if v[6] is not None:
            raise ValueError("level 6 (permanent ban) cannot expire")
        for level in range(1, 6):
            hours = v[level]
            if hours is not None and hours <= 0:
                raise ValueError(f"level {level} duration must be positive")
        return v

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
