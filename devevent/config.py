"""Centralized configuration management using Pydantic Settings.

This module provides typed configuration for all application settings,
loaded from environment variables with sensible defaults.

Usage:
    from devevent.config import get_settings
    settings = get_settings()
    uri = settings.mongo.uri
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_bool(v):
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes")
    return bool(v)


class MongoSettings(BaseSettings):
    """MongoDB connection configuration."""

    model_config = SettingsConfigDict(env_prefix="MONGODB_", extra="ignore")

    uri: str = Field(default="", description="MongoDB connection URI")
    database: str = Field(
        default="",
        description="Database name; falls back to the URI path, then 'devevent'",
    )
    server_selection_timeout_ms: int = Field(
        default=5000, description="Fail fast if no server is selectable within this window"
    )
    auto_index: bool = Field(default=True, description="Ensure indexes after connecting")

    @field_validator("auto_index", mode="before")
    @classmethod
    def parse_auto_index(cls, v):
        return _parse_bool(v)


class EventSettings(BaseSettings):
    """Event ingestion configuration."""

    model_config = SettingsConfigDict(env_prefix="EVENTS_", extra="ignore")

    slug_max_attempts: int = Field(
        default=100, ge=1, description="Suffixed slug candidates tried before a random suffix"
    )
    insert_retries: int = Field(
        default=3, ge=0, description="Re-derivations after a duplicate slug at insert time"
    )
    list_limit: int = Field(default=50, ge=1, description="Events returned by the listing")


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )
    origins_regex: str = Field(
        default="",
        validation_alias="CORS_ORIGINS_REGEX",
        description="Regex pattern for origins",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into list."""
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        """Credentials not allowed with wildcard origins."""
        return self.origins != ["*"] and not self.origins_regex


class DebugSettings(BaseSettings):
    """Debug flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_bool(v)


class FeatureSettings(BaseSettings):
    """Feature flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    connect_on_startup: bool = Field(default=False, alias="connect_on_startup")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_bool(v)


class Settings:
    """Main application settings combining all configuration sections.

    This is not a BaseSettings subclass to avoid env var conflicts.
    Each subsetting is loaded independently with its own prefix.
    """

    def __init__(self) -> None:
        self.mongo = MongoSettings()
        self.events = EventSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()
        self.features = FeatureSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing)."""
    get_settings.cache_clear()
