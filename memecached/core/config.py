"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MEMECACHED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "memecached"
    version: str = "0.1.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8000, description="Server port")

    # Database
    config_path: Path = Field(
        default=Path("./config"),
        description="Directory holding the SQLite database when no URL is given",
    )
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy async database URL (defaults to SQLite under config_path)",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Object storage
    s3_bucket_name: str = Field(default="memecached", description="Bucket holding meme images")
    aws_region: str = Field(default="us-east-1", description="Region of the image bucket")
    cdn_domain: str = Field(
        default="cdn.memecached.local",
        description="Public domain images are served from (https://<cdn_domain>/<key>)",
    )
    presigned_url_expiry_seconds: int = Field(default=300, ge=30, le=3600)
    allowed_extensions: list[str] = Field(
        default=["png", "jpeg", "jpg", "gif", "webp"],
        description="Image file extensions accepted for upload",
    )

    # Pagination
    default_page_limit: int = Field(default=20, description="Default feed page size")
    max_page_limit: int = Field(default=50, description="Upper clamp for feed page size")
    default_page_size: int = Field(default=20, description="Default dashboard page size")
    max_page_size: int = Field(default=100, description="Largest accepted dashboard page size")


# Global settings instance
settings = Settings()
