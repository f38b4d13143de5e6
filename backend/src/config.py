"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- Artsy upstream API access (base URL, client credentials, web URL)
- Database connection (MongoDB)
- Session tokens (JWT settings)
- Password hashing
- CORS and deployment mode
- Logging and monitoring

All settings support environment variable overrides and .env file loading.
Variable names match the deployment environment of the service
(e.g. ARTSY_API_BASE, JWT_SECRET, MONGODB_URI).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, ValidationInfo, field_validator
from typing import List
from functools import lru_cache


_CHOICES = {
    "environment": ("development", "staging", "production"),
    "log_level": ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    "log_format": ("json", "text"),
    "jwt_algorithm": ("HS256", "HS384", "HS512"),
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are loaded from:
    1. System environment
    2. .env file in the current directory
    3. Default values defined below
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="Artsy Favorites API",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="API version"
    )
    api_prefix: str = Field(
        default="/api",
        description="API URL prefix"
    )

    debug: bool = Field(
        default=False,
        description="Debug mode - enables auto-reload and verbose logging"
    )
    environment: str = Field(
        default="development",
        description="Environment: development|staging|production"
    )

    host: str = Field(
        default="0.0.0.0",
        description="API bind host"
    )
    port: int = Field(
        default=8080,
        description="API bind port",
        gt=0,
        lt=65536
    )

    # =========================================================================
    # Artsy Upstream Settings
    # =========================================================================

    artsy_api_base: str = Field(
        default="https://api.artsy.net/api",
        description="Artsy REST API base URL"
    )
    artsy_web_url: str = Field(
        default="https://www.artsy.net",
        description="Artsy website base URL used to absolutize description links"
    )
    artsy_client_id: str = Field(
        default="",
        description="Artsy application client id"
    )
    artsy_client_secret: str = Field(
        default="",
        description="Artsy application client secret"
    )
    artsy_token_ttl_seconds: int = Field(
        default=3600,
        description="How long a fetched X-App token is reused (seconds)",
        gt=0
    )
    artsy_page_size: int = Field(
        default=10,
        description="Result size requested from list/search endpoints",
        gt=0,
        le=100
    )
    artsy_timeout: float = Field(
        default=10.0,
        description="Upstream HTTP request timeout (seconds)",
        gt=0
    )
    artsy_default_image: str = Field(
        default="artsy_logo.svg",
        description="Local asset used when an upstream thumbnail is missing"
    )
    artsy_missing_image_path: str = Field(
        default="/assets/shared/missing_image.png",
        description="Upstream placeholder path that denotes a missing thumbnail"
    )

    # =========================================================================
    # Database Settings (MongoDB)
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URL"
    )
    mongodb_database: str = Field(
        default="artsy_app",
        description="MongoDB database name"
    )
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000,
        description="Server selection timeout (milliseconds)",
        gt=0
    )

    # =========================================================================
    # JWT Session Settings
    # =========================================================================

    jwt_secret: str = Field(
        default="change-this-secret-key-in-production-minimum-32-chars",
        description="Secret key for session token signing (MUST be changed in production)",
        min_length=32
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    jwt_access_token_expire_minutes: int = Field(
        default=60,
        description="Session token expiration time in minutes",
        gt=0,
        le=1440  # Max 24 hours
    )

    # =========================================================================
    # Password Hashing Settings
    # =========================================================================

    password_bcrypt_rounds: int = Field(
        default=10,
        description="BCrypt hash rounds (higher = slower but more secure)",
        ge=4,
        le=14
    )

    # =========================================================================
    # CORS Settings
    # =========================================================================

    cors_origins: List[str] = Field(
        default=["http://localhost:4200"],
        description="Allowed CORS origins outside production"
    )

    # =========================================================================
    # Monitoring and Logging
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )
    metrics_endpoint: str = Field(
        default="/metrics",
        description="Metrics endpoint path"
    )
    security_headers_enabled: bool = Field(
        default=True,
        description="Enable security headers (X-Frame-Options, etc.)"
    )

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG|INFO|WARNING|ERROR|CRITICAL"
    )
    log_format: str = Field(
        default="json",
        description="Log format: json|text"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("environment", "log_level", "log_format", "jwt_algorithm")
    @classmethod
    def validate_choice(cls, v: str, info: ValidationInfo) -> str:
        """Normalize case and check the value against the allowed options."""
        allowed = _CHOICES[info.field_name]
        normalized = v.upper() if allowed[0].isupper() else v.lower()
        if normalized not in allowed:
            raise ValueError(f"{info.field_name} must be one of {list(allowed)}, got: {v}")
        return normalized

    @field_validator("artsy_api_base", "artsy_web_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Base URLs are joined with absolute paths, so drop a trailing slash."""
        return v.rstrip("/")

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def session_max_age_seconds(self) -> int:
        """Session cookie lifetime, aligned with the token expiry."""
        return self.jwt_access_token_expire_minutes * 60

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production; local development runs over http."""
        return self.is_production

    @property
    def cookie_samesite(self) -> str:
        """Cross-site cookies in production, lax for local cross-origin development."""
        return "none" if self.is_production else "lax"

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and shared
    across the application.

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from backend.src.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.artsy_api_base)
        https://api.artsy.net/api
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
