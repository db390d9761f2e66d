"""
Core configuration module for the session coordination core.

WBS 1.2.1: Settings Class Implementation
WBS 1.2.2: Settings Singleton

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the SESSION_CORE_ prefix.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the SESSION_CORE_ prefix for environment variables.
    Example: SESSION_CORE_REDIS_URL=redis://cache:6379/2
    """

    # =========================================================================
    # WBS 1.2.1.1: Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="session-core",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Default log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # =========================================================================
    # WBS 1.2.1.2: Redis Configuration
    # =========================================================================
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for session and request records",
    )
    redis_pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Size of the Redis connection pool",
    )

    # =========================================================================
    # WBS 1.2.1.3: Storage Key Layout
    # =========================================================================
    session_key_prefix: str = Field(
        default="sessions:",
        min_length=1,
        description="Key prefix for session hashes",
    )
    request_key_prefix: str = Field(
        default="requests:",
        min_length=1,
        description="Key prefix for request records",
    )
    session_index_prefix: str = Field(
        default="session_requests:",
        min_length=1,
        description="Key prefix for the per-session request index",
    )

    model_config = {
        "env_prefix": "SESSION_CORE_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # WBS 1.2.1.4: Field Validators
    # =========================================================================
    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis:// or rediss://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# WBS 1.2.2: Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.
    Tests that change the environment call ``get_settings.cache_clear()``.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
