"""Application configuration management."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Settings
    app_name: str = "Analysis Recovery"
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Analyze payload limits
    max_payload_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum combined UTF-8 size of all source file contents"
    )
    default_max_chars: int = Field(
        default=200_000,
        description="Character ceiling applied to each source section"
    )

    # Diagnostics
    raw_preview_chars: int = Field(
        default=1000,
        description="Number of raw upstream characters logged outside production"
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings: Application settings loaded from environment
    """
    return Settings()


# Global settings instance
settings = get_settings()
