"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Exposure store settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database (async driver URL; the dialect selects the storage backend)
    database_url: str = "sqlite+aiosqlite:///./exposure_reports.db"
    sql_echo: bool = False
    pool_recycle_seconds: int = 1800
    sqlite_busy_timeout_seconds: float = 30.0

    # Referential action applied when an owner row is deleted
    owner_fk_on_delete: Literal["RESTRICT", "CASCADE"] = "RESTRICT"

    # Listing
    list_page_size: int = 500

    # Transient storage failure handling (upsert only)
    storage_retry_attempts: int = 3
    storage_retry_min_wait_seconds: float = 0.5
    storage_retry_max_wait_seconds: float = 8.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
