"""Configuration management for the relay admin CLI.

This module provides a Settings class with flat, environment-driven fields
and grouped views over them.

Usage:
    from relay_admin.config import settings

    # Access grouped settings
    settings.redis.get_url()
    settings.security.bcrypt_rounds

    # Or the flat fields
    settings.redis_host
    settings.init_file_path
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import LoggingConfig
from .redis import RedisConfig
from .security import SecurityConfig


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Redis Configuration
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_password: str | None = Field(default=None)
    redis_db: int = Field(default=0, ge=0, le=15)
    redis_url: str | None = Field(default=None)
    redis_max_connections: int = Field(default=5, ge=1)
    redis_socket_timeout: int = Field(default=5, ge=1)
    redis_socket_connect_timeout: int = Field(default=5, ge=1)

    # Bootstrap record (durable source of truth for the admin credential)
    data_dir: str = Field(
        default="data",
        description="Directory holding the durable bootstrap record",
    )
    init_file_name: str = Field(default="init.json")
    init_file_version: str = Field(default="1.0.0")

    # Admin Credential Configuration
    admin_credentials_key: str = Field(
        default="admin_credentials",
        description="Well-known cache name of the admin session record",
    )
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    min_username_length: int = Field(default=3, ge=1)
    min_password_length: int = Field(default=8, ge=1)

    # API Key Lifecycle Configuration
    expiring_window_days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Keys expiring within this many days are 'expiring soon'",
    )
    renewal_day_options: list[int] = Field(default_factory=lambda: [30, 90])

    # Logging Configuration
    log_level: str = Field(default="WARNING")
    log_format: str = Field(default="console")
    log_file: str | None = Field(default=None)
    log_max_size_mb: int = Field(default=10, ge=1)
    log_backup_count: int = Field(default=5, ge=1)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Only json and console renderers are supported."""
        if v.lower() not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v.lower()

    @field_validator("renewal_day_options")
    @classmethod
    def validate_renewal_days(cls, v):
        """Renewal offsets must be positive."""
        if not v or any(days <= 0 for days in v):
            raise ValueError("renewal_day_options must be a non-empty list of positive integers")
        return v

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def redis(self) -> RedisConfig:
        """Access Redis configuration group."""
        return RedisConfig(
            redis_host=self.redis_host,
            redis_port=self.redis_port,
            redis_password=self.redis_password,
            redis_db=self.redis_db,
            redis_url=self.redis_url,
            redis_max_connections=self.redis_max_connections,
            redis_socket_timeout=self.redis_socket_timeout,
            redis_socket_connect_timeout=self.redis_socket_connect_timeout,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            log_file=self.log_file,
            log_max_size_mb=self.log_max_size_mb,
            log_backup_count=self.log_backup_count,
        )

    @property
    def security(self) -> SecurityConfig:
        """Access credential security configuration group."""
        return SecurityConfig(
            admin_credentials_key=self.admin_credentials_key,
            bcrypt_rounds=self.bcrypt_rounds,
            min_username_length=self.min_username_length,
            min_password_length=self.min_password_length,
        )

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def get_redis_url(self) -> str:
        """Get Redis connection URL."""
        return self.redis.get_url()

    @property
    def init_file_path(self) -> Path:
        """Path of the durable bootstrap record."""
        return Path(self.data_dir) / self.init_file_name


# Global settings instance
settings = Settings()
