"""
OrgPlan Configuration Management

Uses Pydantic Settings for type-safe configuration from environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # =========================================================================
    # APPLICATION
    # =========================================================================
    APP_NAME: str = "OrgPlan"
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "info"
    # Per-component overrides; unset means LOG_LEVEL
    ENGINE_LOG_LEVEL: Optional[str] = None
    SCHEDULER_LOG_LEVEL: Optional[str] = None
    VERSION: str = "0.1.0"

    # =========================================================================
    # API SERVER
    # =========================================================================
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_WORKERS: int = 1
    CORS_ORIGINS: str = "http://localhost:3000"

    # =========================================================================
    # DATABASE
    # =========================================================================
    # Create tables on startup (local development only; production runs migrations)
    DB_CREATE_SCHEMA: bool = False

    # =========================================================================
    # CAPACITY PLANNING
    # =========================================================================
    CAPACITY_PROJECTION_MAX_WEEKS: int = 52
    CRITICAL_PATH_SIZE: int = 5

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================
    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for easy import
settings = get_settings()
