"""Application configuration settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Program Tracker"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./program_tracker.db"
    database_pool_size: int = 10
    database_max_overflow: int = 10

    # Day boundaries are computed in this IANA timezone (local midnight)
    timezone: str = "UTC"

    # Upper bound for a single engine operation, lock wait included (seconds)
    store_timeout_seconds: float = 10.0

    # Default user settings (for single-user deployments without auth)
    default_user_id: int = 1

    # Logging
    log_json: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "PROGRAM_TRACKER_"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
