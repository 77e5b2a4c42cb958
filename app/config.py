# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import get_settings
#   settings = get_settings()
#   app = create_app(settings)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Settings are built once at startup and passed down explicitly. Route
# handlers read them from app.state through the get_app_settings dependency.
# =============================================================================

from functools import lru_cache
from typing import Literal, Optional

from fastapi.requests import HTTPConnection
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every setting has a development-friendly default, so the service
    starts with an empty environment (Sentry disabled, no Redis).
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
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

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level (DEBUG=true forces DEBUG)"
    )

    LOG_JSON: bool = Field(
        default=False,
        description="Emit one JSON object per log line"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    SECRET_KEY: str = Field(
        default="dev-secret-key-change-in-production",
        min_length=16,
        description="Secret key for signing tokens"
    )

    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="Algorithm used to verify bearer tokens"
    )

    JWT_AUDIENCE: str = Field(
        default="authenticated",
        description="Expected 'aud' claim of bearer tokens"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="*",
        description="Allowed CORS origins (comma-separated, * for any)"
    )

    HTTPS_REDIRECT: bool = Field(
        default=False,
        description="Redirect plain HTTP requests to HTTPS"
    )

    # Strict-Transport-Security is sent outside development only; 0 disables it
    HSTS_MAX_AGE: int = Field(
        default=31536000,
        ge=0,
        description="max-age of the Strict-Transport-Security header, in seconds"
    )

    HSTS_INCLUDE_SUBDOMAINS: bool = Field(
        default=False,
        description="Add includeSubDomains to the Strict-Transport-Security header"
    )

    # -------------------------------------------------------------------------
    # Sentry
    # -------------------------------------------------------------------------
    # Leave SENTRY_DSN empty to run without error tracking

    SENTRY_DSN: Optional[str] = Field(
        default=None,
        description="Sentry project DSN"
    )

    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Default trace sample rate when no sampling rule applies"
    )

    SENTRY_RELEASE: Optional[str] = Field(
        default=None,
        description="Release identifier reported with every event"
    )

    SENTRY_DEBUG: bool = Field(
        default=False,
        description="Enable Sentry SDK debug output"
    )

    # -------------------------------------------------------------------------
    # Real-time Notifications
    # -------------------------------------------------------------------------

    REDIS_URL: Optional[str] = Field(
        default=None,
        description="Redis URL for cross-process notification fan-out"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def docs_enabled(self) -> bool:
        """Swagger UI and the OpenAPI schema are served outside production only."""
        return self.ENVIRONMENT in ("development", "staging")

    @property
    def hsts_enabled(self) -> bool:
        return not self.is_development and self.HSTS_MAX_AGE > 0


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once.
    """
    return Settings()


def get_app_settings(connection: HTTPConnection) -> Settings:
    """FastAPI dependency returning the settings the app was built with."""
    return connection.app.state.settings
