import json
import re
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when the environment cannot support the selected provider."""


# Origins that are always allowed in addition to app_url
LOCAL_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

# Provider API keys shorter than this are treated as placeholders
MIN_API_KEY_LENGTH = 20


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    # Prefer JSON, but tolerate comma or space separated values so a
    # misconfigured deployment still starts.
    if raw.startswith(("[", '"', "'")):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()

    origins: list[str] = []
    for part in (p for p in re.split(r"[,\s]+", raw) if p):
        # Wildcards are never echoed back; the allow-list must be explicit.
        if part == "*":
            continue
        if "://" in part:
            origins.append(part.rstrip("/"))
            continue
        # Browsers include the scheme in the Origin header.
        origins.append(f"http://{part}")
        origins.append(f"https://{part}")

    seen: set[str] = set()
    result: list[str] = []
    for origin in origins:
        if origin in seen:
            continue
        seen.add(origin)
        result.append(origin)
    return result


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Provider selection: gemini | openai | mock
    provider: str = "gemini"

    # Gemini settings
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-flash"

    # OpenAI-compatible settings
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    # Upper bound for a single optimize call, in seconds
    provider_timeout_seconds: float = 30.0

    # HTTP Client connection pool settings
    httpx_connect_timeout: float = 10.0
    httpx_read_timeout: float = 60.0
    httpx_write_timeout: float = 10.0
    httpx_pool_timeout: float = 5.0
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 100
    httpx_max_keepalive_connections: int = 20

    # Public origin of the web front end
    app_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("APP_URL", "NEXT_PUBLIC_APP_URL"),
    )

    # Extra CORS origins. NoDecode so values like "10.0.0.5" don't crash
    # JSON parsing at startup.
    cors_origins: Annotated[list[str], NoDecode] = []

    # Rate limiting settings
    rate_limit_max_requests: int = 10
    rate_limit_window_ms: int = 60000
    rate_limit_cleanup_interval_ms: int = 60000

    # Request body limit (bytes)
    max_body_size: int = 64 * 1024

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in ("gemini", "openai", "mock"):
            raise ValueError("provider must be one of: gemini, openai, mock")
        return value

    @field_validator(
        "rate_limit_max_requests",
        "rate_limit_window_ms",
        "rate_limit_cleanup_interval_ms",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator(
        "provider_timeout_seconds",
        "httpx_connect_timeout",
        "httpx_read_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.rate_limit_window_ms / 1000

    @property
    def rate_limit_cleanup_interval_seconds(self) -> float:
        return self.rate_limit_cleanup_interval_ms / 1000

    @property
    def allowed_origins(self) -> list[str]:
        """CORS allow-list; the first entry is the fallback origin."""
        origins: list[str] = []
        for origin in [self.app_url.rstrip("/"), *LOCAL_ORIGINS, *self.cors_origins]:
            if origin and origin not in origins:
                origins.append(origin)
        return origins

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )


def validate_environment(config: Settings) -> None:
    """Fail fast when the selected provider has no usable credential.

    Raises:
        ConfigurationError: If the provider API key is missing or too short
    """
    if config.provider == "mock":
        return

    key_name = f"{config.provider}_api_key"
    api_key = getattr(config, key_name)
    if not api_key:
        raise ConfigurationError(f"{key_name.upper()} environment variable is required")
    if len(api_key) < MIN_API_KEY_LENGTH:
        raise ConfigurationError(f"{key_name.upper()} appears to be invalid (too short)")


# Global settings instance
settings = Settings()
