"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    photos_table: str = "photos"
    users_table: str = "users"
    bookmarks_table: str = "bookmarks"
    photos_bucket: str = "photos"
    supports_upload_timeout: bool = True
    upload_timeout_seconds: float = 15.0
    image_fetch_timeout_seconds: float = 20.0
    image_upload_dir: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
