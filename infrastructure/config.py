from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # make it absolute so reload/CWD doesn't break it
        env_file=Path(__file__).resolve().parents[1] / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="OmniStore", validation_alias="APP_NAME")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias="APP_ENV",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_dir: Path = Field(
        default=Path(__file__).resolve().parents[1] / "logs",
        validation_alias="LOG_DIR",
    )
    log_retention_days: int = Field(default=7, ge=0, validation_alias="LOG_RETENTION_DAYS")

    # Blob storage
    blob_base_url: str = Field(
        default="memory://omnistore",
        validation_alias="BLOB_BASE_URL",
    )
    blob_storage_options: dict = Field(default_factory=dict, validation_alias="BLOB_STORAGE_OPTIONS")

    # Sinks applied to every blob written through the container's storage
    blob_gzip_enabled: bool = Field(default=False, validation_alias="BLOB_GZIP_ENABLED")
    blob_encryption_key: str | None = Field(default=None, validation_alias="BLOB_ENCRYPTION_KEY")
    blob_encryption_iv: str | None = Field(default=None, validation_alias="BLOB_ENCRYPTION_IV")

    # Messaging
    large_message_threshold: int = Field(
        default=256 * 1024,
        ge=0,
        validation_alias="LARGE_MESSAGE_THRESHOLD",
    )
    message_poll_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        validation_alias="MESSAGE_POLL_INTERVAL_SECONDS",
    )
    message_visibility_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="MESSAGE_VISIBILITY_SECONDS",
    )


# Global settings instance
settings = Settings()
