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
    # SUPABASE (catalog + suppliers)
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )

    # ===================
    # CLOUDCONVERT
    # ===================
    cloudconvert_api_key: Optional[str] = Field(
        None,
        description="CloudConvert API key (PDF <-> DOCX conversion)"
    )
    cloudconvert_base_url: str = Field(
        default="https://api.cloudconvert.com/v2",
        description="CloudConvert REST API base URL"
    )
    cloudconvert_sync_url: str = Field(
        default="https://sync.api.cloudconvert.com/v2",
        description="CloudConvert synchronous API base URL (job wait)"
    )
    conversion_timeout_seconds: float = Field(
        default=120.0,
        ge=5,
        le=600,
        description="Upper bound for a single conversion job"
    )

    # ===================
    # CLOUDFLARE R2 (image storage)
    # ===================
    r2_account_id: Optional[str] = Field(None, description="Cloudflare account ID")
    r2_access_key_id: Optional[str] = Field(None, description="R2 access key")
    r2_secret_access_key: Optional[str] = Field(None, description="R2 secret key")
    r2_bucket_name: Optional[str] = Field(None, description="R2 bucket for product images")
    r2_public_url: Optional[str] = Field(
        None,
        description="Public base URL for objects in the bucket"
    )

    # ===================
    # DOCUMENT ASSEMBLY
    # ===================
    template_path: str = Field(
        default="assets/product_selection.docx",
        description="Product selection DOCX template"
    )
    placeholder_image_path: str = Field(
        default="assets/no-image.png",
        description="Image used when a line item has no usable image"
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        ge=1,
        le=120,
        description="Timeout for image fetches"
    )

    # ===================
    # RECONCILIATION
    # ===================
    fuzzy_suggestion_limit: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum fuzzy suggestions per unmatched code"
    )
    fuzzy_match_max_unmatched: int = Field(
        default=20,
        ge=0,
        le=500,
        description="Skip fuzzy scoring when more codes than this are unmatched"
    )

    # ===================
    # CATALOG IMPORT
    # ===================
    import_batch_size: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Concurrent catalog writes per batch"
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

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def cloudconvert_configured(self) -> bool:
        """Check if PDF conversion is available."""
        return bool(self.cloudconvert_api_key)

    @property
    def r2_configured(self) -> bool:
        """Check if image storage is properly configured."""
        return bool(
            self.r2_account_id
            and self.r2_access_key_id
            and self.r2_secret_access_key
            and self.r2_bucket_name
        )


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
