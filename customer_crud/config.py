"""
Configuration management for the customer CRUD service.

Uses Pydantic Settings for type-safe configuration with multiple sources:
- Environment variables (highest priority)
- .env file
- Defaults (lowest priority)
"""

import logging
from typing import Literal

import bcrypt
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEMORY_DATABASE = ":memory:"


def normalize_database_dsn(dsn: str) -> str:
    """
    Reduce a database connection string to a SQLite database path.

    Accepts any of these:
      - sqlite:///relative/path.db
      - sqlite:////absolute/path.db
      - sqlite:// or sqlite:///:memory: (in-memory database)
      - :memory:
      - a bare filesystem path

    Raises:
        ValueError: For any other URL scheme (e.g. postgres://)
    """
    dsn = dsn.strip()
    if not dsn:
        raise ValueError("database dsn must not be empty")

    if dsn.startswith("sqlite://"):
        path = dsn[len("sqlite://"):]
        if path in ("", "/"):
            return MEMORY_DATABASE
        # sqlite:///foo.db -> foo.db, sqlite:////tmp/foo.db -> /tmp/foo.db
        return path[1:] if path.startswith("/") else path

    if "://" in dsn:
        scheme = dsn.split("://", 1)[0]
        raise ValueError(f"Unsupported database scheme '{scheme}' (only sqlite is supported)")

    return dsn


class ServiceConfig(BaseSettings):
    """HTTP service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=9999, ge=1, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


class DatabaseConfig(BaseSettings):
    """Customer database connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    dsn: str = Field(
        default="sqlite:///./data/customers.db",
        description="Database connection string (sqlite:///path, :memory: or a bare path)",
    )
    connect_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Upper bound for opening the database connection",
    )

    @field_validator("dsn")
    @classmethod
    def validate_dsn(cls, v: str) -> str:
        normalize_database_dsn(v)
        return v.strip()

    @property
    def path(self) -> str:
        """SQLite database path derived from the connection string."""
        return normalize_database_dsn(self.dsn)

    @property
    def is_memory(self) -> bool:
        return self.path == MEMORY_DATABASE


class LoggingConfig(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOGGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    json_output: bool = Field(
        default=True, description="Use JSON output (True for production, False for development)"
    )
    colorized: bool = Field(
        default=False, description="Colorize console output (only for development)"
    )

    # Service metadata (injected into all logs)
    service_name: str = Field(default="customer-crud")
    service_version: str = Field(default="0.1.0")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )


class AuthConfig(BaseSettings):
    """
    HTTP Basic authentication for the customer routes.

    Both fields must be set to enable authentication. The password is stored
    as a bcrypt hash, never in plaintext.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    basic_login: str | None = Field(default=None)
    basic_password_hash: str | None = Field(
        default=None, description="bcrypt hash of the Basic auth password"
    )

    @field_validator("basic_password_hash")
    @classmethod
    def validate_bcrypt_hash(cls, v: str | None) -> str | None:
        if not v:
            return None
        if not v.startswith(("$2a$", "$2b$", "$2y$")):
            raise ValueError("basic_password_hash must be a bcrypt hash ($2b$...)")
        try:
            bcrypt.checkpw(b"", v.encode())
        except ValueError as e:
            raise ValueError(f"basic_password_hash is not a valid bcrypt hash: {e}") from e
        return v

    @model_validator(mode="after")
    def validate_pair(self) -> "AuthConfig":
        if bool(self.basic_login) != bool(self.basic_password_hash):
            raise ValueError(
                "basic_login and basic_password_hash must be configured together"
            )
        return self

    @property
    def enabled(self) -> bool:
        return bool(self.basic_login and self.basic_password_hash)


class Settings(BaseSettings):
    """Root configuration for the customer CRUD service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    def validate_configuration(self) -> None:
        """
        Log warnings for risky but valid configurations.
        Called at application startup.
        """
        if not self.auth.enabled:
            logging.warning(
                "Basic authentication not configured - customer routes are unauthenticated"
            )

        if self.database.is_memory:
            logging.warning("Using in-memory database - customers will not survive a restart")


# Global settings instance (lazy-loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get global settings instance (singleton pattern).

    Returns:
        Settings: Application configuration
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.validate_configuration()
    return _settings
