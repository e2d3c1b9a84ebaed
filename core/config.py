"""
Application configuration using Pydantic settings.

Usage:
    from core.config import get_settings
    settings = get_settings()

Required environment:
    - SOCIAL_MEDIA_API_BASE_URL
    - ACCESS_TOKEN
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError

FINGERPRINT_LENGTH = 6


class Settings(BaseSettings):
    """
    Unified application settings loaded from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App settings
    app_name: str = "Social Leaderboard"
    debug: bool = Field(default=False, validation_alias="DEBUG")
    server_port: int = Field(default=3000, validation_alias="SERVER_PORT")

    # Upstream social media API
    social_media_api_base_url: str = Field(validation_alias="SOCIAL_MEDIA_API_BASE_URL")
    access_token: str = Field(validation_alias="ACCESS_TOKEN")
    upstream_timeout_seconds: float = Field(default=10.0, validation_alias="UPSTREAM_TIMEOUT_SECONDS")

    # Redis
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_db: int = Field(default=0, validation_alias="REDIS_DB")
    redis_password: Optional[str] = Field(default=None, validation_alias="REDIS_PASSWORD")

    # Caching
    cache_ttl_seconds: int = Field(default=60, gt=0, validation_alias="CACHE_TTL_SECONDS")

    # Background refresh (0 disables the scheduler)
    data_refresh_interval_minutes: float = Field(
        default=0, ge=0, validation_alias="DATA_REFRESH_INTERVAL_MINUTES"
    )

    @field_validator("social_media_api_base_url", "access_token")
    @classmethod
    def require_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("redis_password")
    @classmethod
    def blank_password_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def redis_url(self) -> str:
        """Construct Redis URL from components."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def credential_fingerprint(self) -> str:
        """Trailing characters of the access token, used to namespace cache keys."""
        return self.access_token[-FINGERPRINT_LENGTH:]

    @property
    def background_refresh_enabled(self) -> bool:
        return self.data_refresh_interval_minutes > 0


def _field_env_names(errors: list) -> List[str]:
    names = []
    for error in errors:
        loc = error.get("loc") or ()
        field = str(loc[0]) if loc else "<unknown>"
        info = Settings.model_fields.get(field)
        alias = info.validation_alias if info is not None else None
        names.append(str(alias or field).upper())
    return names


def load_settings() -> Settings:
    """
    Build settings from the environment.

    Raises:
        ConfigurationError: If a required variable is missing or a value is invalid.
    """
    try:
        return Settings()
    except ValidationError as e:
        names = _field_env_names(e.errors())
        details = "; ".join(
            f"{name}: {err.get('msg', 'invalid')}" for name, err in zip(names, e.errors())
        )
        raise ConfigurationError(
            f"Invalid or missing configuration ({details})",
            missing=names,
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return load_settings()


__all__ = ["Settings", "get_settings", "load_settings", "FINGERPRINT_LENGTH"]
