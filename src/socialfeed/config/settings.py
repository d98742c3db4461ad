"""Pydantic settings configuration for the social feed service."""

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 9020
    log_level: LogLevel = LogLevel.INFO

    # Hosted backend settings
    backend_url: str = "http://localhost:54321"
    backend_api_key: str = ""
    image_bucket: str = "post_images"
    request_timeout: float = 15.0

    # Retry settings (reads only, writes are never retried)
    retry_attempts: int = 2
    retry_backoff_ms: int = 300

    # Composer settings
    composer_timeout_min: int = 60
    suggested_users_limit: int = 5
    max_images_per_post: int = 4

    # Observability settings
    audit_enabled: bool = True
    audit_log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
