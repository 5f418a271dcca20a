"""
Tubely Configuration Management Module

This module provides configuration management for the Tubely video service
using Pydantic Settings. It loads and validates all environment variables
required for:
- Application settings (name, environment, debug mode, logging)
- Local JWT verification for bearer tokens
- MongoDB connection for video records
- S3/MinIO object storage and presigned URL expiry
- Media processing (assets root, ffmpeg/ffprobe executables, upload limits)

Settings are built once at startup and passed explicitly into the services
that need them.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


# Upload ceilings
VIDEO_UPLOAD_LIMIT_BYTES = 1 << 30  # 1 GiB
THUMBNAIL_UPLOAD_LIMIT_BYTES = 10 << 20  # 10 MiB

# Presigned GET URLs served to clients are valid for 20 minutes
SIGNED_URL_EXPIRATION_SECONDS = 1200

APP_ENVIRONMENTS = frozenset({"development", "staging", "production", "testing"})


class Settings(BaseSettings):
    """
    Tubely settings, read from environment variables and an optional .env file.

    Field names map to upper-case variables: ``S3_BUCKET_NAME``,
    ``MAX_VIDEO_UPLOAD_BYTES``, ``ASSETS_ROOT`` and so on. ``CORS_ORIGINS``
    accepts a comma-separated list.
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="Tubely",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=True, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit structured JSON logs instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    platform_url: str = Field(
        default="http://localhost:8091",
        description="Public base URL of this service, used to build asset links",
    )

    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:8091"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # Auth Configuration
    # =========================================================================

    jwt_secret: str = Field(
        default="development-jwt-secret-change-in-production-32chars",
        description="Secret used to sign and verify access tokens",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    jwt_issuer: str = Field(
        default="tubely-access", description="Issuer claim expected on access tokens"
    )

    jwt_expiration_hours: int = Field(
        default=1, description="Access token lifetime in hours", ge=1, le=168
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(default="tubely", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(
        default=10, description="Minimum number of connections in MongoDB connection pool", ge=1
    )

    mongodb_max_pool_size: int = Field(
        default=100, description="Maximum number of connections in MongoDB connection pool", ge=1
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str = Field(
        default="minioadmin", description="S3/MinIO access key ID for authentication"
    )

    s3_secret_access_key: str = Field(
        default="minioadmin", description="S3/MinIO secret access key for authentication"
    )

    s3_bucket_name: str = Field(default="tubely-videos", description="Bucket for uploaded videos")

    s3_region: str = Field(default="us-east-1", description="AWS region for the S3 bucket")

    signed_url_expiration_seconds: int = Field(
        default=SIGNED_URL_EXPIRATION_SECONDS,
        description="Lifetime of presigned GET URLs handed to clients (20 minutes)",
        ge=60,
        le=86400,
    )

    # =========================================================================
    # Media Processing Settings
    # =========================================================================

    assets_root: Path = Field(
        default=Path("./assets"),
        description="Writable directory for staged uploads and served thumbnails",
    )

    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable used for remuxing")

    ffprobe_path: str = Field(default="ffprobe", description="ffprobe executable used for probing")

    max_video_upload_bytes: int = Field(
        default=VIDEO_UPLOAD_LIMIT_BYTES,
        description="Maximum accepted video upload size in bytes (1 GiB)",
        ge=1,
    )

    max_thumbnail_upload_bytes: int = Field(
        default=THUMBNAIL_UPLOAD_LIMIT_BYTES,
        description="Maximum accepted thumbnail upload size in bytes (10 MiB)",
        ge=1,
    )

    upload_chunk_size_bytes: int = Field(
        default=1024 * 1024,
        description="Chunk size used when copying an upload stream to disk",
        ge=4096,
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log_level {v!r}")
        return v.lower()

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        if v.lower() not in APP_ENVIRONMENTS:
            raise ValueError(f"app_env must be one of {sorted(APP_ENVIRONMENTS)}, got {v!r}")
        return v.lower()

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Tokens are verified with the shared secret, so only HS* algorithms apply."""
        if v.upper() not in {"HS256", "HS384", "HS512"}:
            raise ValueError(f"Unsupported jwt_algorithm {v!r}; use HS256, HS384 or HS512")
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("platform_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get the process-wide Settings instance.

    Only the composition root (application startup and FastAPI dependency
    providers) should call this; services receive the Settings object through
    their constructors.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
