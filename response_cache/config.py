"""
Application configuration using Pydantic settings.

Usage:
    from response_cache.config import get_settings
    settings = get_settings()

The store endpoint and credential are process-wide; the only per-route
parameter is the TTL handed to each cache interceptor.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified application settings loaded from environment variables and .env file.

    Redis settings mirror the connection options of the store client:
        - REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD
        - REDIS_CONNECT_TIMEOUT (seconds), REDIS_SOCKET_TIMEOUT (seconds)
        - REDIS_RETRY_STEP_MS / REDIS_RETRY_CAP_MS: linear background-reconnect backoff
        - REDIS_RETRY_ATTEMPTS: per-command retries on a pooled connection
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App settings
    app_name: str = Field(default="Storefront API", validation_alias="APP_NAME")
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    # CORS
    cors_allowed_origins: str = Field(default="http://localhost:5173", validation_alias="CORS_ALLOWED_ORIGINS")

    # Response cache
    cache_backend: Literal["redis", "memory"] = Field(default="redis", validation_alias="CACHE_BACKEND")
    cache_namespace: str = Field(default="response", validation_alias="CACHE_NAMESPACE")
    cache_default_ttl: int = Field(default=900, validation_alias="CACHE_DEFAULT_TTL")

    # Redis
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_db: int = Field(default=0, validation_alias="REDIS_DB")
    redis_password: Optional[str] = Field(default=None, validation_alias="REDIS_PASSWORD")
    redis_connect_timeout: float = Field(default=10.0, validation_alias="REDIS_CONNECT_TIMEOUT")
    redis_socket_timeout: float = Field(default=5.0, validation_alias="REDIS_SOCKET_TIMEOUT")
    redis_keepalive: bool = Field(default=True, validation_alias="REDIS_KEEPALIVE")
    redis_max_connections: int = Field(default=50, validation_alias="REDIS_MAX_CONNECTIONS")
    redis_retry_step_ms: int = Field(default=50, validation_alias="REDIS_RETRY_STEP_MS")
    redis_retry_cap_ms: int = Field(default=1000, validation_alias="REDIS_RETRY_CAP_MS")
    # Per-command retries; longer outages are left to the background reconnect
    redis_retry_attempts: int = Field(default=1, validation_alias="REDIS_RETRY_ATTEMPTS")

    @property
    def redis_url(self) -> str:
        """Construct Redis URL from components (password masked)."""
        auth = ":***@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @field_validator(
        "cache_default_ttl",
        "redis_connect_timeout",
        "redis_socket_timeout",
        "redis_max_connections",
        "redis_retry_step_ms",
        "redis_retry_cap_ms",
    )
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("redis_retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("cache_namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("CACHE_NAMESPACE cannot be empty")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
