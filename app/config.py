"""Application configuration."""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_env: str = "development"
    database_url: str = "sqlite:///./webhook_console.db"
    log_level: str = "INFO"

    # Redis (change feed + Celery)
    redis_url: str = "redis://localhost:6379/0"

    # Change feed for webhook log inserts: "redis" or "memory"
    log_feed_backend: str = "redis"
    log_feed_channel: str = "webhook_logs"

    # Outbound webhook POSTs wait indefinitely unless a timeout is set
    webhook_timeout: Optional[float] = None
    log_list_limit: int = 50

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
