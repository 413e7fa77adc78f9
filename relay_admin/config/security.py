"""Security configuration for the administrative credential."""

from pydantic import Field
from pydantic_settings import BaseSettings


class SecurityConfig(BaseSettings):
    """Credential bootstrap settings."""

    admin_credentials_key: str = Field(default="admin_credentials")
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    min_username_length: int = Field(default=3, ge=1)
    min_password_length: int = Field(default=8, ge=1)

    class Config:
        env_prefix = ""
        extra = "ignore"
