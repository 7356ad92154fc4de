"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )
    catalog_table: str = Field(
        default="inventory_items",
        description="Table holding the inventory catalog (unique on code)"
    )

    # ===================
    # IMPORT PIPELINE
    # ===================
    import_lookup_chunk_size: int = Field(
        default=1000,
        ge=1,
        le=5000,
        description="Codes per existing-key lookup query"
    )
    import_upsert_chunk_size: int = Field(
        default=500,
        ge=1,
        le=5000,
        description="Records per upsert call"
    )
    import_chunk_pause_ms: int = Field(
        default=10,
        ge=0,
        le=5000,
        description="Pause between upsert chunks in milliseconds"
    )
    import_max_errors_per_file: int = Field(
        default=50,
        ge=0,
        le=1000,
        description="Validation errors kept per file for preview"
    )
    import_max_errors_per_row: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Validation errors kept per row for preview"
    )
    import_plan_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Minutes an uploaded plan waits for commit"
    )
    import_max_upload_size_mb: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum size of a single uploaded spreadsheet"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the API (JSON list in env)"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)

    @property
    def max_upload_size_bytes(self) -> int:
        """Upload limit in bytes."""
        return self.import_max_upload_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
