"""
Configuration and settings for the visit-log backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CURSOR_SECRET = "visitlog-dev-cursor-secret-change-me"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="")
    log_level: str = Field(default="INFO")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # S3 photo storage
    photo_bucket: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_endpoint: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    photo_base_url: Optional[str] = Field(default=None)
    upload_url_expires_in: int = Field(default=3600, ge=60, le=604800)

    # Signs pagination cursors handed to clients.
    cursor_secret: str = Field(default=DEFAULT_CURSOR_SECRET)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    def resolved_photo_base_url(self) -> str:
        if self.photo_base_url:
            return self.photo_base_url.rstrip("/")
        if self.photo_bucket:
            return f"https://{self.photo_bucket}.s3.amazonaws.com"
        return "https://example.test/storage"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
