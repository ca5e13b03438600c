# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, so a missing Supabase
# key fails the process immediately instead of on the first request.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret for verifying Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # AI Gateway Configuration
    # -------------------------------------------------------------------------
    # Any OpenAI-compatible chat completions endpoint with vision + tool calls

    AI_GATEWAY_URL: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible AI gateway"
    )

    AI_GATEWAY_API_KEY: str = Field(
        default="",
        description="API key for the AI gateway"
    )

    AI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Vision-capable model used by the AI tools"
    )

    AI_TEMPERATURE: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Temperature for the file reviewer (tool-call endpoints use the model default)"
    )

    AI_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for a single AI gateway call"
    )

    # -------------------------------------------------------------------------
    # Email (SendGrid)
    # -------------------------------------------------------------------------

    SENDGRID_API_KEY: str = Field(
        default="",
        description="SendGrid API key; contact emails fail with 500 when empty"
    )

    SENDGRID_FROM_EMAIL: str = Field(
        default="no-reply@stockmeta.app",
        description="Verified sender address"
    )

    SENDGRID_FROM_NAME: str = Field(
        default="Contact Form",
        description="Sender display name"
    )

    SUPPORT_EMAIL: str = Field(
        default="support@stockmeta.app",
        description="Inbox that receives contact form submissions; shown in user emails"
    )

    APP_NAME: str = Field(
        default="StockMeta",
        description="Product name used in user email subjects and footers"
    )

    DASHBOARD_URL: str = Field(
        default="http://localhost:5173/dashboard",
        description="Dashboard link used by the buttons in user emails"
    )

    # -------------------------------------------------------------------------
    # Scheduled Jobs
    # -------------------------------------------------------------------------

    CRON_SECRET: str = Field(
        default="",
        description="Shared secret accepted in X-Cron-Secret for scheduled endpoints"
    )

    GENERATION_RETENTION_DAYS: int = Field(
        default=3,
        ge=1,
        description="Generations older than this are purged by the cleanup job"
    )

    GENERATION_BUCKET: str = Field(
        default="generation-images",
        description="Storage bucket holding uploaded generation images"
    )

    # -------------------------------------------------------------------------
    # Media Processing
    # -------------------------------------------------------------------------

    VIDEO_FRAME_TIME_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Requested timestamp for video frame extraction"
    )

    FFMPEG_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for ffmpeg/ffprobe subprocess calls"
    )

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum file upload size in MB"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:5173, https://stockmeta.app" -> ["http://localhost:5173", "https://stockmeta.app"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
