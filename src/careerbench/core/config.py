"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """Provider selection and inference parameters."""

    model_config = {"env_prefix": "CAREERBENCH_LLM_"}

    mode: Literal["local", "cloud", "hybrid", "mock"] = "cloud"
    backend: Literal["openai", "anthropic"] = "openai"
    model_name: str = "gpt-4o-mini"
    local_model_path: str | None = None
    n_ctx: int = 4096
    n_batch: int = 2048
    n_threads: int | None = None  # None = all available cores
    n_gpu_layers: int = 0
    max_tokens: int = 1000
    request_timeout: float = 60.0
    temperature: float = 0.3


class RateLimitConfig(BaseSettings):
    """Token-bucket limits applied in front of cloud backends."""

    model_config = {"env_prefix": "CAREERBENCH_RATE_LIMIT_"}

    capacity: int = 50
    window_seconds: float = 60.0


class RetrySettings(BaseSettings):
    """Exponential backoff parameters for cloud calls."""

    model_config = {"env_prefix": "CAREERBENCH_RETRY_"}

    max_retries: int = 3
    initial_delay_ms: int = 500
    max_delay_ms: int = 10_000
    multiplier: float = 2.0


class CacheConfig(BaseSettings):
    """Response cache configuration."""

    model_config = {"env_prefix": "CAREERBENCH_CACHE_"}

    enabled: bool = True
    backend: Literal["sql", "redis", "memory"] = "sql"
    database_url: str = "sqlite:///careerbench.db"
    job_parse_ttl_days: int | None = 90
    resume_ttl_days: int | None = 30
    cover_letter_ttl_days: int | None = 30
    skill_suggestions_ttl_days: int | None = 30
    max_entries: int | None = None
    max_size_mb: float | None = None


class RedisConfig(BaseSettings):
    """Redis cache backend configuration."""

    model_config = {"env_prefix": "CAREERBENCH_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    key_prefix: str = "careerbench:ai_cache"


class SecretsConfig(BaseSettings):
    """Credential storage configuration."""

    model_config = {"env_prefix": "CAREERBENCH_SECRETS_"}

    backend: Literal["aws", "memory"] = "memory"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    name_prefix: str = "careerbench/"


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "CAREERBENCH_"}

    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    llm: LLMConfig = LLMConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    retry: RetrySettings = RetrySettings()
    cache: CacheConfig = CacheConfig()
    redis: RedisConfig = RedisConfig()
    secrets: SecretsConfig = SecretsConfig()
