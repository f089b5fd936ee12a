"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production injects via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


DEFAULT_ASSISTANT_PROMPT = (
    "你是一个专业的客服助手。请保持友好、专业的态度，耐心解答用户的问题。"
    "对于之前对话中提到的内容，你可以记住并在后续回答中引用。"
)


class RateLimitPolicy(BaseModel):
    """Budget for a single endpoint inside a fixed window."""

    max_requests: int = Field(..., ge=1)
    window_seconds: int = Field(..., ge=1)


def _default_rate_limit_policies() -> dict[str, RateLimitPolicy]:
    return {
        "default": RateLimitPolicy(max_requests=100, window_seconds=60),
        "/api/auth/login": RateLimitPolicy(max_requests=5, window_seconds=60),
        "/api/auth/register": RateLimitPolicy(max_requests=3, window_seconds=60),
        "/api/auth/reset-password": RateLimitPolicy(max_requests=3, window_seconds=300),
    }


class LLMSettings(BaseSettings):
    """Chat-completions provider configuration.

    Both supported providers speak the OpenAI wire format; ``poe`` only
    changes the default base URL.
    """

    provider: str = Field(
        "poe",
        description="Chat provider name (poe or openai)",
    )
    model: str = Field(
        "gpt-3.5-turbo",
        description="Default model for the customer-service assistant",
    )
    api_key: str | None = Field(
        None,
        description="Provider API key",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (defaults per provider)",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )
    assistant_system_prompt: str = Field(
        DEFAULT_ASSISTANT_PROMPT,
        description="System prompt prepended to assistant conversations",
    )
    assistant_temperature: float = Field(0.7, ge=0.0, le=2.0)
    assistant_max_tokens: int = Field(2000, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class ImageGenerationSettings(BaseSettings):
    """Seedream image generation configuration."""

    api_key: str | None = Field(None, description="Seedream (Ark) API key")
    base_url: str = Field(
        "https://ark.cn-beijing.volces.com/api/v3",
        description="Seedream API base URL",
    )
    model: str = Field("doubao-seedream-4-0-250828")
    default_size: str = Field("2K")
    watermark: bool = Field(True)
    default_max_images: int = Field(3, ge=1)
    timeout_seconds: float = Field(120.0)

    model_config = SettingsConfigDict(
        env_prefix="SEEDREAM_",
        case_sensitive=False,
    )


class SupabaseSettings(BaseSettings):
    """Hosted backend (Supabase) configuration."""

    url: str | None = Field(None, description="Supabase project URL")
    service_role_key: str | None = Field(
        None,
        description="Service role key used for admin, storage and table access",
    )
    reference_bucket: str = Field("reference-images")
    competitor_table: str = Field("public_reference_images")
    profiles_table: str = Field("user_profiles")
    rate_limit_table: str = Field("rate_limits")

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None)
    max_bytes: int = Field(10 * 1024 * 1024)
    backup_count: int = Field(5)
    request_id_header: str = Field("X-Request-ID")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether proxy routes require a client key",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid client keys",
    )
    cors_allow_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins",
    )
    public_base_url: str | None = Field(
        None,
        description="Public base URL of this service, used to build image proxy links",
    )
    max_upload_size_mb: int = Field(
        10,
        description="Maximum competitor image upload size in megabytes",
    )
    image_proxy_timeout_seconds: float = Field(30.0)
    image_proxy_cache_control: str = Field("public, max-age=86400, immutable")
    min_password_length: int = Field(6, ge=1)

    rate_limit_enabled: bool = Field(
        True,
        description="Throttle proxy routes per client key",
    )
    rate_limit_backend: str = Field(
        "memory",
        description="Store for the rate-limit check endpoint: memory or supabase",
    )
    rate_limit_requests: int = Field(
        30,
        description="Maximum proxy requests per window (per client key)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Proxy rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_policies: dict[str, RateLimitPolicy] = Field(
        default_factory=_default_rate_limit_policies,
        description="Per-endpoint budgets for the rate-limit check endpoint (JSON)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Nested settings are created via default_factory so each group reads its
    own prefixed environment variables.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=LLMSettings)
    image: ImageGenerationSettings = Field(default_factory=ImageGenerationSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
