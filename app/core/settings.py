"""Application settings using Pydantic Settings for typed configuration.

This module centralizes all configuration and provides type-safe access to settings.
Settings are loaded from environment variables with sensible defaults.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    env_name: str = Field(default="development", alias="ENV_NAME")
    app_name: str = Field(default="Storefront", alias="APP_NAME")

    # Database
    database_url: str = Field(alias="DATABASE_URL")

    # Admin panel
    session_secret_key: str = Field(alias="SESSION_SECRET_KEY")
    admin_username: str = Field(alias="ADMIN_USERNAME")
    admin_password: str = Field(alias="ADMIN_PASSWORD")

    # CORS
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Email (Resend)
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    app_domain: str = Field(default="resend.dev", alias="APP_DOMAIN")

    # OTP / sessions
    otp_expires_minutes: int = Field(
        default=10, alias="OTP_EXPIRES_MINUTES", ge=1, le=60
    )
    session_expires_days: int = Field(
        default=30, alias="SESSION_EXPIRES_DAYS", ge=1, le=90
    )

    # Shopify
    shopify_store_domain: str | None = Field(
        default=None, alias="SHOPIFY_STORE_DOMAIN"
    )
    shopify_admin_access_token: str | None = Field(
        default=None, alias="SHOPIFY_ADMIN_ACCESS_TOKEN"
    )
    shopify_storefront_access_token: str | None = Field(
        default=None, alias="SHOPIFY_STOREFRONT_ACCESS_TOKEN"
    )
    shopify_api_version: str = Field(default="2025-04", alias="SHOPIFY_API_VERSION")
    shopify_timeout_seconds: float = Field(
        default=5.0, alias="SHOPIFY_TIMEOUT_SECONDS", gt=0, le=30
    )

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        origins = []
        for o in self.cors_origins.split(","):
            trimmed = o.strip()
            if trimmed:
                origins.append(trimmed)
        return origins

    @computed_field
    @property
    def otp_expires_in(self) -> timedelta:
        """Get OTP lifetime as timedelta."""
        return timedelta(minutes=self.otp_expires_minutes)

    @computed_field
    @property
    def session_expires_in(self) -> timedelta:
        """Get session expiration as timedelta."""
        return timedelta(days=self.session_expires_days)

    @computed_field
    @property
    def email_from(self) -> str:
        """Sender address for transactional email."""
        return f"noreply@{self.app_domain}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
