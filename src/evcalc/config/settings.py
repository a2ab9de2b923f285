"""Application configuration schema and validation."""

from typing import Literal, Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Application environment",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="HTTP server port",
    )
    oddsshopper_api_url: AnyHttpUrl = Field(
        ...,
        description="Base URL of the OddsShopper market-data API",
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL; caching is disabled when unset",
    )
    redis_api_cache_ttl: int = Field(
        default=60,
        ge=1,
        description="TTL in seconds for cached upstream offer data",
    )
    redis_ev_cache_ttl: int = Field(
        default=300,
        ge=1,
        description="TTL in seconds for cached EV results",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="Total timeout for upstream API requests",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank as unset and require a redis:// or rediss:// scheme."""
        if v is None or not v.strip():
            return None
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("redis_url must start with redis://, rediss:// or unix://")
        return v

    @property
    def api_base_url(self) -> str:
        """Upstream base URL without a trailing slash."""
        return str(self.oddsshopper_api_url).rstrip("/")


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the singleton AppConfig instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config
