"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_LOCALE = "IN"


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file.

    The credential fields double as single-tenant overrides: when set they
    win over whatever a catalog request carries in its configuration.
    """

    app_name: str = Field(default="AI Recs (Gemini)", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=7080, alias="PORT")

    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_api_url: HttpUrl = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_API_URL",
    )
    gemini_timeout_seconds: float = Field(
        default=30.0, alias="GEMINI_TIMEOUT", gt=0, le=300
    )

    trakt_client_id: str | None = Field(default=None, alias="TRAKT_CLIENT_ID")
    trakt_username: str | None = Field(default=None, alias="TRAKT_USERNAME")
    trakt_api_url: HttpUrl = Field(
        default="https://api.trakt.tv", alias="TRAKT_API_URL"
    )
    trakt_timeout_seconds: float = Field(
        default=15.0, alias="TRAKT_TIMEOUT", gt=0, le=120
    )

    preferred_locale: str | None = Field(default=None, alias="PREFERRED_LOCALE")

    pool_cache_seconds: int = Field(default=7_200, alias="POOL_CACHE_TTL", ge=0)
    watched_cache_seconds: int = Field(
        default=900, alias="WATCHED_CACHE_TTL", ge=0
    )
    cache_max_entries: int = Field(
        default=1_024, alias="CACHE_MAX_ENTRIES", ge=1, le=1_000_000
    )
    pool_source_limit: int = Field(
        default=60, alias="POOL_SOURCE_LIMIT", ge=1, le=100
    )
    history_limit: int = Field(default=200, alias="HISTORY_LIMIT", ge=1, le=1_000)

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator(
        "gemini_api_key",
        "trakt_client_id",
        "trakt_username",
        "preferred_locale",
        mode="before",
    )
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        """Treat empty environment values as unset."""

        if isinstance(value, str):
            return value.strip() or None
        return value

    @property
    def fully_configured(self) -> bool:
        """Return whether every credential comes from the environment."""

        return bool(
            self.gemini_api_key and self.trakt_client_id and self.trakt_username
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
