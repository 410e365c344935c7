"""
Configuration management for Elo Insight.

Uses Pydantic settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables or a local .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variable names are the upper-cased field names, e.g.
    BACKEND_URL="http://localhost:8080" or FRESHNESS_WINDOW_MS=60000.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Application Metadata
    # ==========================================================================
    app_name: str = "Elo Insight Stats API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = Field(default="INFO", description="Root log level for CLI and API")

    # ==========================================================================
    # Backend / Upstream
    # ==========================================================================
    backend_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the backend that stores selections and profiles",
    )
    upstream_url: Optional[str] = Field(
        default=None,
        description="Base URL of the per-game stats proxy (defaults to backend_url)",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the backend",
    )

    @computed_field
    @property
    def stats_url(self) -> str:
        """Get the effective upstream stats URL."""
        return self.upstream_url or self.backend_url

    # ==========================================================================
    # HTTP Client
    # ==========================================================================
    http_timeout: float = Field(default=30.0, gt=0)
    http_max_retries: int = Field(default=3, ge=1, le=10)
    requests_per_minute: int = Field(default=600, ge=1)

    # ==========================================================================
    # Refresh Behaviour
    # ==========================================================================
    freshness_window_ms: int = Field(
        default=30_000,
        ge=0,
        description="Minimum interval between two fetches of the same game/platform",
    )
    refresh_on_add_delay: float = Field(
        default=0.5,
        ge=0,
        description="Seconds to wait before refreshing a newly added selection",
    )
    preserve_data_on_reload: bool = Field(
        default=False,
        description="Keep already-fetched stats for selections that survive a reload",
    )

    # ==========================================================================
    # API Server
    # ==========================================================================
    cors_allow_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the HTTP API",
    )
    cors_allow_methods: list[str] = ["GET", "POST", "DELETE", "OPTIONS"]

    @computed_field
    @property
    def auth_headers(self) -> dict[str, str]:
        """Headers sent on every backend request."""
        if self.api_token:
            return {"Authorization": f"Bearer {self.api_token}"}
        return {}


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
