"""Logging configuration."""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class LoggingConfig(BaseSettings):
    """Logging settings for the CLI; records go to stderr and, optionally, a file."""

    level: str = Field(default="WARNING", alias="log_level")
    format: str = Field(default="console", alias="log_format")
    file: str | None = Field(default=None, alias="log_file")
    max_size_mb: int = Field(default=10, ge=1, alias="log_max_size_mb")
    backup_count: int = Field(default=5, ge=1, alias="log_backup_count")

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v):
        return v.upper()

    @property
    def level_number(self) -> int:
        """Numeric stdlib level; unknown names fall back to WARNING."""
        return getattr(logging, self.level, logging.WARNING)

    @property
    def use_json(self) -> bool:
        return self.format.lower() == "json"

    @property
    def max_bytes(self) -> int:
        return self.max_size_mb * 1024 * 1024

    class Config:
        env_prefix = ""
        extra = "ignore"
