from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./connectx.db"
    # Separate store for login sessions; in-memory when unset
    SESSION_DATABASE_URL: Optional[str] = None

    # API
    API_TITLE: str = "ConnectX API"
    API_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str
    SESSION_TTL_HOURS: int = 24 * 30
    SESSION_PRUNE_INTERVAL_SECONDS: int = 86400

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()
