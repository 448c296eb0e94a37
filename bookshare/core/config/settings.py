#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
BookShare listing service. All configuration is centralized here so the cache
layer, the database layer and the API agree on the same values.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with reload_settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """
    External cache (Redis) configuration.

    REDIS_URL is optional. When it is absent the service runs in
    local-cache-only mode, which is a fully supported configuration.
    """

    REDIS_URL: str | None = Field(default=None, description="Redis connection URL (optional)")
    REDIS_CONNECT_TIMEOUT: float = Field(default=3.0, description="Connect timeout in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Caching configuration for the listing read path.

    STAGE-2: Cache TTL and capacity configuration
    """

    CACHE_LISTING_TTL: int = Field(default=60, description="Listing page TTL in seconds")
    CACHE_FALLBACK_MAX_SIZE: int = Field(
        default=100, description="Process-local fallback tier capacity"
    )
    CACHE_LISTING_LOCAL_MAX_SIZE: int = Field(
        default=50, description="Listing route's own in-memory tier capacity"
    )
    CACHE_USER_TTL: int = Field(default=30, description="Current-user record TTL in seconds")
    CACHE_USER_MAX_SIZE: int = Field(default=500, description="Current-user cache capacity")
    CACHE_INVALIDATE_ON_WRITE: bool = Field(
        default=False,
        description="Drop cached listing pages after a successful create/update/delete",
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class DatabaseSettings(BaseSettings):
    """Relational store configuration (SQLAlchemy async URL)."""

    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./bookshare.db", description="SQLAlchemy async database URL"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL statements")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class IdentitySettings(BaseSettings):
    """Identity provider (Clerk) backend API configuration."""

    CLERK_API_URL: str = Field(default="https://api.clerk.com/v1", description="Clerk API base URL")
    CLERK_SECRET_KEY: str | None = Field(default=None, description="Clerk backend secret key")
    IDENTITY_TIMEOUT: float = Field(default=5.0, description="Identity API timeout in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="production", description="Application environment"
    )
    APP_NAME: str = Field(default="BookShare API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from bookshare.core.config.settings import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_LISTING_TTL
        redis_url = settings.redis.REDIS_URL
    """

    # Redis settings
    REDIS_URL: str | None = Field(default=None, description="Redis connection URL (optional)")
    REDIS_CONNECT_TIMEOUT: float = Field(default=3.0, description="Connect timeout in seconds")

    # Cache settings
    CACHE_LISTING_TTL: int = Field(default=60, description="Listing page TTL in seconds")
    CACHE_FALLBACK_MAX_SIZE: int = Field(default=100, description="Fallback tier capacity")
    CACHE_LISTING_LOCAL_MAX_SIZE: int = Field(default=50, description="Listing tier capacity")
    CACHE_USER_TTL: int = Field(default=30, description="Current-user TTL in seconds")
    CACHE_USER_MAX_SIZE: int = Field(default=500, description="Current-user cache capacity")
    CACHE_INVALIDATE_ON_WRITE: bool = Field(
        default=False, description="Invalidate listing pages on writes"
    )

    # Database settings
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./bookshare.db", description="SQLAlchemy async database URL"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL statements")

    # Identity provider settings
    CLERK_API_URL: str = Field(default="https://api.clerk.com/v1", description="Clerk API base URL")
    CLERK_SECRET_KEY: str | None = Field(default=None, description="Clerk backend secret key")
    IDENTITY_TIMEOUT: float = Field(default=5.0, description="Identity API timeout in seconds")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="production", description="Application environment"
    )
    APP_NAME: str = Field(default="BookShare API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("REDIS_URL")
    @classmethod
    def normalize_redis_url(cls, v):
        """Treat blank as unset and add the redis:// scheme when missing."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith(("redis://", "rediss://", "unix://")):
            return f"redis://{v}"
        return v

    # Nested configuration views
    @property
    def redis(self) -> "RedisSettings":
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_CONNECT_TIMEOUT=self.REDIS_CONNECT_TIMEOUT,
        )

    @property
    def cache(self) -> "CacheSettings":
        """Get cache settings."""
        return CacheSettings(
            CACHE_LISTING_TTL=self.CACHE_LISTING_TTL,
            CACHE_FALLBACK_MAX_SIZE=self.CACHE_FALLBACK_MAX_SIZE,
            CACHE_LISTING_LOCAL_MAX_SIZE=self.CACHE_LISTING_LOCAL_MAX_SIZE,
            CACHE_USER_TTL=self.CACHE_USER_TTL,
            CACHE_USER_MAX_SIZE=self.CACHE_USER_MAX_SIZE,
            CACHE_INVALIDATE_ON_WRITE=self.CACHE_INVALIDATE_ON_WRITE,
        )

    @property
    def database(self) -> "DatabaseSettings":
        """Get database settings."""
        return DatabaseSettings(DATABASE_URL=self.DATABASE_URL, DATABASE_ECHO=self.DATABASE_ECHO)

    @property
    def identity(self) -> "IdentitySettings":
        """Get identity provider settings."""
        return IdentitySettings(
            CLERK_API_URL=self.CLERK_API_URL,
            CLERK_SECRET_KEY=self.CLERK_SECRET_KEY,
            IDENTITY_TIMEOUT=self.IDENTITY_TIMEOUT,
        )

    @property
    def logging(self) -> "LoggingSettings":
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> "ApplicationSettings":
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            CORS_ORIGINS=self.CORS_ORIGINS,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
