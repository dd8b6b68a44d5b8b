"""Runtime configuration for the Field Activity Log System."""

from pathlib import Path
from enum import Enum
from pydantic import Field
from pydantic_settings import BaseSettings


class StoreBackend(str, Enum):
    """Supported backing stores."""
    SQLITE = "sqlite"
    SUPABASE = "supabase"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Data directory
    data_dir: Path = Field(
        default=Path("./fieldlog-data"),
        validation_alias="FIELDLOG_DATA_DIR"
    )

    # Backing store
    store_backend: StoreBackend = Field(
        default=StoreBackend.SQLITE,
        validation_alias="FIELDLOG_STORE"
    )
    sqlite_path: Path | None = Field(
        default=None,
        validation_alias="FIELDLOG_DB"
    )
    supabase_url: str | None = Field(
        default=None,
        validation_alias="SUPABASE_URL"
    )
    supabase_key: str | None = Field(
        default=None,
        validation_alias="SUPABASE_KEY"
    )

    # Extraction service
    extraction_url: str | None = Field(
        default=None,
        validation_alias="FIELDLOG_EXTRACTION_URL"
    )
    extraction_token: str | None = Field(
        default=None,
        validation_alias="FIELDLOG_EXTRACTION_TOKEN"
    )
    preferred_extractor: str | None = Field(
        default=None,
        validation_alias="FIELDLOG_PREFERRED_EXTRACTOR"
    )
    extraction_timeout_seconds: float = Field(
        default=120.0,
        validation_alias="FIELDLOG_EXTRACTION_TIMEOUT"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    def get_extraction_url(self) -> str | None:
        """Get the extraction endpoint, derived from the Supabase URL if unset."""
        if self.extraction_url:
            return self.extraction_url
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/functions/v1/process-transcription"
        return None

    def get_extraction_token(self) -> str | None:
        """Get the bearer token sent to the extraction service."""
        return self.extraction_token or self.supabase_key

    def get_sqlite_path(self) -> Path:
        """Get the path to the local SQLite database."""
        if self.sqlite_path:
            return self.sqlite_path
        return self.data_dir / "fieldlog.db"


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
