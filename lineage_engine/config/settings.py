"""
Configuration settings for the Document Lineage Engine.
Uses pydantic-settings for environment variable management.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from lineage_engine.utils.constants import (
    CONFIDENCE_THRESHOLD,
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_DOMAIN,
    DEFAULT_JITTER_RATIO,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_TEMPERATURE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SYSTEM,
)


class OpenRouterSettings(BaseSettings):
    """OpenRouter model client configuration."""

    model_config = SettingsConfigDict(env_prefix="OPENROUTER_")

    api_key: str = Field(default="", description="OpenRouter API key")
    base_url: str = Field(
        default="https://openrouter.ai/api/v1", description="OpenRouter API base URL"
    )
    model: str = Field(default=DEFAULT_LLM_MODEL, description="Model used for lineage generation")
    referer: str = Field(
        default="https://github.com/your-repo", description="HTTP-Referer header value"
    )
    timeout_seconds: float = Field(
        default=float(DEFAULT_REQUEST_TIMEOUT), description="Request timeout"
    )
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, description="Max tokens per response")
    temperature: float = Field(default=DEFAULT_LLM_TEMPERATURE, description="Sampling temperature")


class RetrySettings(BaseSettings):
    """Backoff policy for throttled model calls."""

    model_config = SettingsConfigDict(env_prefix="MODEL_RETRY_")

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=0, description="Retries after the first attempt"
    )
    base_delay_ms: int = Field(
        default=DEFAULT_BASE_DELAY_MS, ge=0, description="Delay before the first retry"
    )
    jitter_ratio: float = Field(
        default=DEFAULT_JITTER_RATIO, ge=0.0, le=1.0, description="Jitter as a share of the delay"
    )


class PipelineSettings(BaseSettings):
    """Lineage generation pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    confidence_threshold: float = Field(
        default=CONFIDENCE_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum node confidence for automatic verification",
    )
    domain: str = Field(default=DEFAULT_DOMAIN, description="Qualified name prefix")
    system: str = Field(default=DEFAULT_SYSTEM, description="System tag on persisted nodes")


class StorageSettings(BaseSettings):
    """Local extraction storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    extraction_root: str = Field(
        default="./data/extractions",
        description="Root directory holding <bucket>/<key> extraction documents",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application
    app_name: str = Field(default="Document Lineage Engine", description="Application name")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Logging level")

    # Sub-configurations
    openrouter: OpenRouterSettings = Field(default_factory=OpenRouterSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
