#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
thread digest service. All configuration is centralized here so that the
cache stores, the Slack adapters and the Gemini gateway read the same values.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Nested, read-only views per concern (settings.redis, settings.cache, ...)
- Easy testing with reload_settings()

Author: System Architect
Date: 2025-12-05
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SECTION_CONFIG = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RedisSettings(BaseSettings):
    """
    Redis configuration for the durable summary cache and the installation store.

    STAGE-0.1: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")
    REDIS_CONNECT_RETRIES: int = Field(default=3, description="Connection attempts at startup")

    model_config = _SECTION_CONFIG


class SlackSettings(BaseSettings):
    """
    Slack Web API configuration.

    STAGE-0.2: Slack client configuration
    """

    SLACK_BOT_TOKEN: str | None = Field(
        default=None, description="Fallback bot token for single-workspace deployments"
    )
    SLACK_SIGNING_SECRET: str | None = Field(
        default=None, description="Verifies slash command requests; unset skips verification"
    )
    MAX_THREAD_MESSAGES: int = Field(default=100, description="conversations.replies page limit")
    SLACK_TOKEN_CACHE_TTL: int = Field(default=300, description="Bot token cache TTL (seconds)")
    SLACK_USER_CACHE_TTL: int = Field(default=3600, description="Display-name cache TTL (seconds)")

    model_config = _SECTION_CONFIG


class LLMSettings(BaseSettings):
    """
    Gemini generation configuration.

    STAGE-0.3: Generation gateway configuration
    """

    GOOGLE_API_KEY: str | None = Field(default=None, description="Google Gemini API key")
    GEMINI_MODEL: str = Field(default="gemini-2.5-pro", description="Gemini model name")
    GEMINI_TEMPERATURE: float = Field(default=0.3, description="Sampling temperature")
    GEMINI_MAX_OUTPUT_TOKENS: int = Field(default=2048, description="Response token cap")
    MAX_MESSAGES_FOR_PROMPT: int = Field(default=30, description="Newest messages sent to the model")
    GENERATION_TIMEOUT_SECONDS: float = Field(default=60.0, description="Upper bound per generation call")

    model_config = _SECTION_CONFIG


class CacheSettings(BaseSettings):
    """
    Summary cache configuration.

    STAGE-2: Cache TTL and sizing

    The durable store is the shared source of truth and lives for months;
    the local store is a latency shortcut and lives for weeks.
    """

    ENABLE_CACHING: bool = Field(default=True, description="Enable the summary cache")
    SUMMARY_CACHE_BACKEND: Literal["redis", "local"] = Field(
        default="redis", description="Store used by the server-side orchestrator"
    )
    SUMMARY_CACHE_TTL_DAYS: int = Field(default=90, description="Durable store TTL (days)")
    LOCAL_CACHE_TTL_DAYS: int = Field(default=14, description="Local store TTL (days)")
    LOCAL_CACHE_MAX_ENTRIES: int = Field(default=100, description="Local store capacity")
    LOCAL_CACHE_PATH: str | None = Field(default=None, description="Optional JSON file for the local store")
    CACHE_FINGERPRINT_STRATEGY: Literal["message_count", "content_hash"] = Field(
        default="message_count", description="How content change is detected"
    )
    ENABLE_INFLIGHT_DEDUP: bool = Field(
        default=False, description="Share one generation between concurrent misses on a key"
    )

    model_config = _SECTION_CONFIG


class RateLimitSettings(BaseSettings):
    """
    Rate limiting configuration.

    STAGE-1.2: Rate limiting thresholds (slowapi)
    """

    RATE_LIMIT_DEFAULT: str = Field(default="60/minute", description="Default rate limit")
    RATE_LIMIT_STORAGE_URI: str = Field(default="memory://", description="limits storage URI")

    model_config = _SECTION_CONFIG


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

    model_config = _SECTION_CONFIG


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Slack Thread Digest", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8080, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for API routers")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = _SECTION_CONFIG


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from thread_digest.core.config.settings import get_settings

        settings = get_settings()
        ttl_days = settings.cache.SUMMARY_CACHE_TTL_DAYS
        model = settings.llm.GEMINI_MODEL
    """

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")
    REDIS_CONNECT_RETRIES: int = Field(default=3, description="Connection attempts at startup")

    # Slack settings
    SLACK_BOT_TOKEN: str | None = Field(default=None, description="Fallback bot token")
    SLACK_SIGNING_SECRET: str | None = Field(default=None, description="Slash command signing secret")
    MAX_THREAD_MESSAGES: int = Field(default=100, description="conversations.replies page limit")
    SLACK_TOKEN_CACHE_TTL: int = Field(default=300, description="Bot token cache TTL (seconds)")
    SLACK_USER_CACHE_TTL: int = Field(default=3600, description="Display-name cache TTL (seconds)")

    # LLM settings
    GOOGLE_API_KEY: str | None = Field(default=None, description="Google Gemini API key")
    GEMINI_MODEL: str = Field(default="gemini-2.5-pro", description="Gemini model name")
    GEMINI_TEMPERATURE: float = Field(default=0.3, description="Sampling temperature")
    GEMINI_MAX_OUTPUT_TOKENS: int = Field(default=2048, description="Response token cap")
    MAX_MESSAGES_FOR_PROMPT: int = Field(default=30, description="Newest messages sent to the model")
    GENERATION_TIMEOUT_SECONDS: float = Field(default=60.0, description="Upper bound per generation call")

    # Cache settings
    ENABLE_CACHING: bool = Field(default=True, description="Enable the summary cache")
    SUMMARY_CACHE_BACKEND: Literal["redis", "local"] = Field(default="redis")
    SUMMARY_CACHE_TTL_DAYS: int = Field(default=90, description="Durable store TTL (days)")
    LOCAL_CACHE_TTL_DAYS: int = Field(default=14, description="Local store TTL (days)")
    LOCAL_CACHE_MAX_ENTRIES: int = Field(default=100, description="Local store capacity")
    LOCAL_CACHE_PATH: str | None = Field(default=None, description="Optional JSON file for the local store")
    CACHE_FINGERPRINT_STRATEGY: Literal["message_count", "content_hash"] = Field(default="message_count")
    ENABLE_INFLIGHT_DEDUP: bool = Field(default=False)

    # Rate limiting settings
    RATE_LIMIT_DEFAULT: str = Field(default="60/minute", description="Default rate limit")
    RATE_LIMIT_STORAGE_URI: str = Field(default="memory://", description="limits storage URI")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Slack Thread Digest", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8080, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for API routers")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("MAX_THREAD_MESSAGES", "LOCAL_CACHE_MAX_ENTRIES", "SUMMARY_CACHE_TTL_DAYS")
    @classmethod
    def validate_positive(cls, v):
        """Reject zero or negative sizes and TTLs."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    # Nested configuration views
    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
            REDIS_CONNECT_RETRIES=self.REDIS_CONNECT_RETRIES,
        )

    @property
    def slack(self) -> SlackSettings:
        """Get Slack settings."""
        return SlackSettings(
            SLACK_BOT_TOKEN=self.SLACK_BOT_TOKEN,
            SLACK_SIGNING_SECRET=self.SLACK_SIGNING_SECRET,
            MAX_THREAD_MESSAGES=self.MAX_THREAD_MESSAGES,
            SLACK_TOKEN_CACHE_TTL=self.SLACK_TOKEN_CACHE_TTL,
            SLACK_USER_CACHE_TTL=self.SLACK_USER_CACHE_TTL,
        )

    @property
    def llm(self) -> LLMSettings:
        """Get generation gateway settings."""
        return LLMSettings(
            GOOGLE_API_KEY=self.GOOGLE_API_KEY,
            GEMINI_MODEL=self.GEMINI_MODEL,
            GEMINI_TEMPERATURE=self.GEMINI_TEMPERATURE,
            GEMINI_MAX_OUTPUT_TOKENS=self.GEMINI_MAX_OUTPUT_TOKENS,
            MAX_MESSAGES_FOR_PROMPT=self.MAX_MESSAGES_FOR_PROMPT,
            GENERATION_TIMEOUT_SECONDS=self.GENERATION_TIMEOUT_SECONDS,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            ENABLE_CACHING=self.ENABLE_CACHING,
            SUMMARY_CACHE_BACKEND=self.SUMMARY_CACHE_BACKEND,
            SUMMARY_CACHE_TTL_DAYS=self.SUMMARY_CACHE_TTL_DAYS,
            LOCAL_CACHE_TTL_DAYS=self.LOCAL_CACHE_TTL_DAYS,
            LOCAL_CACHE_MAX_ENTRIES=self.LOCAL_CACHE_MAX_ENTRIES,
            LOCAL_CACHE_PATH=self.LOCAL_CACHE_PATH,
            CACHE_FINGERPRINT_STRATEGY=self.CACHE_FINGERPRINT_STRATEGY,
            ENABLE_INFLIGHT_DEDUP=self.ENABLE_INFLIGHT_DEDUP,
        )

    @property
    def rate_limit(self) -> RateLimitSettings:
        """Get rate limit settings."""
        return RateLimitSettings(
            RATE_LIMIT_DEFAULT=self.RATE_LIMIT_DEFAULT,
            RATE_LIMIT_STORAGE_URI=self.RATE_LIMIT_STORAGE_URI,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            DEBUG=self.DEBUG,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            API_BASE_PATH=self.API_BASE_PATH,
            CORS_ORIGINS=self.CORS_ORIGINS,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.4: Settings initialization

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
