"""
Configuration Module

Manages application configuration using pydantic-settings.
Loads environment variables and provides typed configuration objects.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Living Apps (Record Store) Configuration
    living_apps_base_url: str = Field(
        default="https://my.living-apps.de/rest",
        description="Base URL of the Living Apps REST API",
    )
    living_apps_cookie: Optional[str] = Field(
        default=None,
        description="Raw Cookie header carrying the Living Apps session",
    )
    customers_app_id: str = Field(
        default="69134384a7881852231ba8c7",
        description="App id of the customer collection (Kundendaten)",
    )
    services_app_id: str = Field(
        default="6913437daff7287a0f9bab21",
        description="App id of the service catalog (Leistungskatalog)",
    )
    appointments_app_id: str = Field(
        default="691343895f81839bc1f243fe",
        description="App id of the appointment requests (Terminanfrage)",
    )
    request_timeout: float = Field(default=30.0, gt=0, le=300)

    # Dashboard Settings
    studio_name: str = Field(default="Mein Massage-Studio")
    timezone: str = Field(
        default="Europe/Berlin",
        description="Local zone used for 'today', 'this week' and 'this month'",
    )
    upcoming_horizon_days: int = Field(default=7, ge=1, le=90)
    recent_lookback_days: int = Field(default=7, ge=1, le=90)
    latest_requests_limit: int = Field(default=10, ge=1, le=100)

    # Application Settings
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1024, le=65535)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    @field_validator("living_apps_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoints are appended with a leading slash."""
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("customers_app_id", "services_app_id", "appointments_app_id")
    @classmethod
    def validate_app_id(cls, v: str) -> str:
        """Living Apps ids are 24 hexadecimal characters."""
        if len(v) != 24 or any(c not in "0123456789abcdefABCDEF" for c in v):
            raise ValueError("Living Apps app id must be 24 hexadecimal characters")
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure singleton pattern - settings are loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Export settings instance for convenience
settings = get_settings()
