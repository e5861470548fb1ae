"""Configuration management for the portfolio CMS content store.

All configuration values can be overridden via environment variables
(prefixed with ``CMS_``) or a .env file.

Environment Variables:
    CMS_DATA_DIR: Root data directory. When unset, the first existing of
                  ./data and ../data is used, falling back to ./data.
    CMS_CONTENTS_DIRNAME: Sub-directory holding per-content databases
                          (default: contents)
    CMS_INDEX_DB_FILENAME: Shared index database file name (default: index.db)
    CMS_JOURNAL_MODE: SQLite journal mode applied on connect (default: WAL)
    CMS_SQL_ECHO: Enable SQL query logging for debugging (default: false)
    CMS_DEFAULT_LANG: Language stored when content omits one (default: ja)
    CMS_LOG_LEVEL: Logging level (default: INFO)
    CMS_ENVIRONMENT: Environment name (default: development)
    CMS_DEBUG: Enable debug tracing of saves and reads (default: false)
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the content store."""

    model_config = SettingsConfigDict(
        env_prefix="CMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage layout
    data_dir: Optional[Path] = None
    contents_dirname: str = "contents"
    index_db_filename: str = "index.db"

    # SQLite configuration
    journal_mode: str = "WAL"
    sql_echo: bool = False

    # Content defaults
    default_lang: str = "ja"

    # Logging configuration
    log_level: str = "INFO"

    # Environment configuration
    environment: str = "development"
    debug: bool = False

    def resolve_data_dir(self) -> Path:
        """Get the data directory, probing the usual locations when unset."""
        if self.data_dir is not None:
            return Path(self.data_dir)

        cwd = Path.cwd()
        for candidate in (cwd / "data", cwd.parent / "data"):
            if candidate.is_dir():
                return candidate
        return cwd / "data"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
