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
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # AI EXTRACTION
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Anthropic API key used by the spreadsheet importer"
    )
    ai_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used to interpret spreadsheet rows"
    )
    ai_max_tokens: int = Field(
        default=8192,
        ge=256,
        le=64000,
        description="Maximum tokens in the extraction response"
    )
    ai_temperature: float = Field(
        default=0.1,
        ge=0,
        le=1,
        description="Sampling temperature (low = consistent output)"
    )

    # ===================
    # IMPORT
    # ===================
    import_batch_size: int = Field(
        default=50,
        ge=1,
        le=200,
        description="Rows sent to the AI per extraction call"
    )
    import_max_rows: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Rows beyond this limit are ignored with a warning"
    )
    import_report_unresolved_associations: bool = Field(
        default=True,
        description="Report sizes/colors that matched no reference entity"
    )
    import_preview_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=240,
        description="Minutes an uploaded spreadsheet stays available for import"
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
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://localhost:8080",
        ],
        description="Dashboard origins allowed by CORS (JSON list in env)"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def ai_configured(self) -> bool:
        """Check if the AI importer has a credential."""
        return bool(self.anthropic_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
