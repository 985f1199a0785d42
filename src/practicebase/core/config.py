"""Configuration management for PracticeBase.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PRACTICEBASE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "PracticeBase"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3030

    # CORS Settings
    cors_origins: list[str] = Field(default=["*"])
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"
    log_file: str | None = Field(
        default=None,
        description="Append structured logs to this file instead of stdout",
    )

    # Data Settings
    seed_data_path: str | None = Field(
        default=None,
        description="JSON file with public seed collections (bundled sample data when unset)",
    )
    protected_data_path: str | None = Field(
        default=None,
        description="JSON file with users and sessions (bundled sample users when unset)",
    )
    rules_path: str | None = Field(
        default=None,
        description="JSON file with the access rule set (bundled rules when unset)",
    )
    max_id_attempts: int = 100

    # Query Settings
    default_page_size: int = 10

    # Identity Settings
    identity_field: str = "email"
    auth_header: str = "X-Authorization"
    admin_header: str = "X-Admin"

    # Request throttling (simulates a slow network for UI work)
    throttle_enabled: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("default_page_size", "max_id_attempts")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Reject zero or negative limits."""
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
