# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Configuration management using Pydantic Settings."""

from typing import Literal

from beartype import beartype
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with immutable configuration.

    ``jwt_secret`` has no default: a process started without ``JWT_SECRET`` in
    its environment fails while loading settings, before any request is served.
    """

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        frozen=True,  # Immutable settings
        validate_default=True,
        extra="forbid",
    )

    # Storage
    storage_backend: Literal["postgres", "memory"] = Field(
        default="postgres",
        description="Where clients, roles, codes and tokens are persisted",
    )
    database_url: str = Field(
        default="postgresql://localhost:5432/oauth2",
        description="PostgreSQL connection URL",
        min_length=1,
    )
    database_pool_min: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Minimum database pool size",
    )
    database_pool_max: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum database pool size",
    )
    database_command_timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Query execution timeout in seconds",
    )

    # API Configuration
    app_name: str = Field(
        default="TenantAuth OAuth2 Server",
        description="Application name",
        min_length=1,
    )
    api_host: str = Field(
        default="0.0.0.0",  # nosec B104 - Binding to all interfaces is needed for containerized deployment
        description="API host to bind to",
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="API port to bind to",
    )
    api_env: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="API environment",
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root log level",
    )

    # Security
    secret_key: str = Field(
        default="test-secret-key-for-testing-only-never-use-in-production-32-chars",
        min_length=32,
        description="Application secret key (CSRF token signing)",
    )
    csrf_enabled: bool = Field(
        default=True,
        description="Require a CSRF token on the token endpoints",
    )
    jwt_secret: str = Field(
        ...,
        min_length=32,
        description="Bearer token signing secret",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        pattern="^HS(256|384|512)$",
        description="JWT algorithm",
    )
    jwt_issuer: str = Field(
        default="oauth2-server",
        min_length=1,
        description="Value reported as 'iss' by token introspection",
    )
    jwt_audience: str = Field(
        default="oauth2-server",
        min_length=1,
        description="Value reported as 'aud' for admin and tenant bearer tokens",
    )

    @field_validator("database_pool_max")
    @classmethod
    def validate_pool_sizes(cls: type["Settings"], v: int, info: ValidationInfo) -> int:
        """Ensure pool max is greater than pool min."""
        if "database_pool_min" in info.data:
            min_size = info.data["database_pool_min"]
            if v < min_size:
                raise ValueError(
                    f"database_pool_max ({v}) must be >= database_pool_min ({min_size})"
                )
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls: type["Settings"], v: str, info: ValidationInfo) -> str:
        """Ensure test secrets are not used in production."""
        if "api_env" in info.data and info.data["api_env"] == "production":
            if v.startswith("test-"):
                raise ValueError(
                    "Test secret key cannot be used in production. "
                    "Set SECRET_KEY environment variable."
                )
        return v

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls: type["Settings"], v: str, info: ValidationInfo) -> str:
        """Ensure test JWT secrets are not used in production."""
        if "api_env" in info.data and info.data["api_env"] == "production":
            if v.startswith("test-"):
                raise ValueError(
                    "Test JWT secret cannot be used in production. "
                    "Set JWT_SECRET environment variable."
                )
        return v

    @property
    @beartype
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.api_env == "production"

    @property
    @beartype
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.api_env == "development"


_settings: Settings | None = None


@beartype
def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings


@beartype
def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    global _settings
    _settings = None
