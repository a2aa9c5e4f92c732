"""
Configuration management for the Clan Hub API.

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

    Every field maps to the upper-cased environment variable of the same name,
    e.g. ``ADMIN_TOKEN`` or ``YOUTUBE_SYNC_INTERVAL_MINUTES``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ==========================================================================
    # Application Metadata
    # ==========================================================================
    app_name: str = "Clan Hub API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", description="development, staging, production")
    log_level: str = "INFO"

    # ==========================================================================
    # Storage
    # ==========================================================================
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string. Without it the memory/file store is used.",
    )
    database_pool_size: int = Field(default=10, ge=1, le=50)
    database_min_pool_size: int = Field(default=1, ge=1, le=10)
    data_file: Optional[str] = Field(
        default=None,
        description="JSON file backing the in-memory store (ignored when database_url is set)",
    )

    @computed_field
    @property
    def use_postgres(self) -> bool:
        """Whether the PostgreSQL store is configured."""
        return bool(self.database_url)

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 10000

    cors_allow_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = ["Accept", "Content-Type", "Authorization", "x-server-token"]
    cors_expose_headers: list[str] = ["X-Process-Time"]

    # ==========================================================================
    # Admin Credentials
    # ==========================================================================
    admin_token: Optional[str] = Field(
        default=None,
        description="Bearer token required by admin endpoints. Admin routes are closed when unset.",
    )
    server_token: Optional[str] = Field(
        default=None,
        description="Optional second secret expected in the x-server-token header",
    )

    # ==========================================================================
    # External API Keys
    # ==========================================================================
    youtube_api_key: Optional[str] = Field(
        default=None,
        description="YouTube Data API v3 key, used to resolve handles/usernames to channel ids",
    )
    twitch_client_id: Optional[str] = None
    twitch_client_secret: Optional[str] = None
    pubg_api_key: Optional[str] = Field(
        default=None,
        description="PUBG developer API key",
    )
    pubg_requests_per_minute: int = Field(default=10, ge=1, description="PUBG key rate limit")

    external_call_timeout: float = Field(
        default=10.0,
        ge=1.0,
        le=60.0,
        description="Upper bound in seconds for any single outbound call",
    )

    # ==========================================================================
    # Feed Sync
    # ==========================================================================
    sync_items_per_channel: int = Field(default=6, ge=1, le=15)
    sync_respect_auto_publish: bool = Field(
        default=False,
        description="Only sync channels flagged auto_publish",
    )

    # ==========================================================================
    # Scheduler
    # ==========================================================================
    scheduler_enabled: bool = True
    youtube_sync_interval_minutes: int = Field(default=180, ge=1)
    youtube_sync_initial_delay_seconds: int = Field(default=30, ge=0)
    member_refresh_enabled: bool = False
    member_refresh_interval_minutes: int = Field(default=360, ge=1)

    @computed_field
    @property
    def twitch_configured(self) -> bool:
        """Twitch Helix needs both app credentials."""
        return bool(self.twitch_client_id and self.twitch_client_secret)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
