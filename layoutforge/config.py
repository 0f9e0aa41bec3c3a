"""Application configuration using pydantic-settings."""

import json
from ast import literal_eval
from functools import lru_cache
from typing import Annotated, ClassVar, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "LayoutForge"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Redis (template / library / published collections)
    redis_url: str = "redis://localhost:6379/0"
    collection_key_prefix: str = "layoutforge"

    # LLM Configuration
    default_llm_model: str = "google-gla:gemini-2.5-flash"
    llm_max_retries: int = 1
    llm_rate_limit_attempts: int = 3
    llm_rate_limit_backoff_seconds: float = 1.0
    extraction_timeout_seconds: float = 8.0
    generation_timeout_seconds: float = 60.0

    dev_model_standard: str | None = None
    dev_model_fast: str | None = None
    prod_model_standard: str | None = None
    prod_model_fast: str | None = None

    _MODEL_DEFAULTS: ClassVar[dict[str, dict[str, str]]] = {
        "development": {
            "standard": "google-gla:gemini-2.5-flash",
            "fast": "google-gla:gemini-2.5-flash",
        },
        "staging": {
            "standard": "google-gla:gemini-2.5-flash",
            "fast": "google-gla:gemini-2.5-flash",
        },
        "production": {
            "standard": "google-gla:gemini-2.5-pro",
            "fast": "google-gla:gemini-2.5-flash",
        },
    }

    def get_model(self, tier: str = "standard") -> str:
        """Resolve the model string for a given tier based on environment.

        Priority: env var override > built-in defaults > default_llm_model fallback.
        """
        env_prefix = "dev" if self.environment in ("development", "staging") else "prod"
        override = getattr(self, f"{env_prefix}_model_{tier}", None)
        if isinstance(override, str) and override:
            return override

        env_defaults = self._MODEL_DEFAULTS.get(self.environment, {})
        resolved = env_defaults.get(tier, self.default_llm_model)
        if isinstance(resolved, str):
            return resolved
        return self.default_llm_model

    # Fetch proxy
    fetch_timeout_seconds: float = 9.0
    fetch_max_bytes: int = 5 * 1024 * 1024
    fetch_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    auth_walled_domains: Annotated[list[str], NoDecode] = [
        "mp.weixin.qq.com",
        "weixin.qq.com",
    ]

    # Sanitizer / prompt limits
    sanitizer_max_chars: int = 8000
    sanitizer_min_chars: int = 100
    format_error_excerpt_chars: int = 200
    reference_excerpt_max_chars: int = 5000
    reference_context_max_chars: int = 20000

    # Attachments
    attachment_max_width: int = 800
    attachment_max_height: int = 800

    # Publishing
    share_base_url: str = "http://localhost:5173/"

    @field_validator("cors_origins", "auth_walled_domains", mode="before")
    @classmethod
    def _parse_string_list(cls, value: object) -> object:
        """Accept JSON list/string or comma-separated values."""
        def normalize(item: object) -> str:
            return str(item).strip().strip("'\"")

        if isinstance(value, list):
            return [normalize(item) for item in value if normalize(item)]
        if not isinstance(value, str):
            return value

        raw = value.strip()
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            try:
                parsed = literal_eval(raw)
            except (ValueError, SyntaxError):
                return [normalize(item) for item in raw.split(",") if normalize(item)]

        if isinstance(parsed, str):
            parsed = [parsed]
        if isinstance(parsed, tuple | set):
            parsed = list(parsed)
        if not isinstance(parsed, list):
            raise ValueError("Expected a JSON array, JSON string, or comma-separated string.")
        return [normalize(item) for item in parsed if normalize(item)]

    def collection_key(self, name: str) -> str:
        """Return the Redis key for a named collection."""
        return f"{self.collection_key_prefix}:{name}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()

    return settings


settings = get_settings()
