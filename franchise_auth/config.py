"""
Application configuration.

Loads settings from environment variables with sensible defaults.
Key material and hashing cost parameters are validated once at startup
and treated as read-only afterwards.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = True
    log_level: str = "INFO"

    # ==========================================================================
    # API Server
    # ==========================================================================

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    app_url: str = "http://localhost:3000"

    # ==========================================================================
    # Authentication
    # ==========================================================================

    jwt_secret_key: str = Field(min_length=32)
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 5
    jwt_refresh_token_expire_days: int = 7
    jwt_magic_token_expire_minutes: int = 15

    # Argon2id cost parameters
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536  # KiB
    argon2_parallelism: int = 4

    # Bootstrap administrator (created at startup when no ADMIN exists)
    admin_email: str = ""
    admin_username: str = ""
    admin_password: str = ""

    # ==========================================================================
    # Messaging
    # ==========================================================================

    rabbitmq_url: str = ""
    rabbitmq_queue: str = "notifications"
    welcome_queue: str = "workflow.welcome"

    # ==========================================================================
    # Optional Services
    # ==========================================================================

    sentry_dsn: str = ""

    # ==========================================================================
    # Validation
    # ==========================================================================

    @field_validator("jwt_algorithm")
    @classmethod
    def _symmetric_algorithm(cls, value: str) -> str:
        if value not in ("HS256", "HS384", "HS512"):
            raise ValueError(f"Unsupported JWT algorithm: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        """Credential cookies are only marked secure in production."""
        return self.is_production

    @property
    def use_rabbitmq(self) -> bool:
        """Whether notifications should go to a real broker."""
        return bool(self.rabbitmq_url)

    @property
    def has_bootstrap_admin(self) -> bool:
        return bool(self.admin_email and self.admin_username and self.admin_password)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
