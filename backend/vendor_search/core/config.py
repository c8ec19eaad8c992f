# backend/vendor_search/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import API_PREFIX

_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _BACKEND_ROOT / ".env"
    logger.info("[CONFIG] Looking for .env at: %s", env_path)
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", alias="ENVIRONMENT")
    database_url_raw: Optional[str] = Field(default=None, alias="DATABASE_URL")
    sqlite_path: str = Field(
        default=str(_BACKEND_ROOT / "vendor_search.db"),
        description="Local SQLite file used when DATABASE_URL is not set",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_prefix: str = Field(default=API_PREFIX, alias="API_PREFIX")
    db_pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, alias="DB_MAX_OVERFLOW")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            logger.warning("Unknown LOG_LEVEL=%s; defaulting to INFO", v)
            return "INFO"
        return level

    def get_database_url(self) -> str:
        """Get the database URL, falling back to a local SQLite file."""
        if self.database_url_raw:
            return self.database_url_raw
        return f"sqlite:///{self.sqlite_path}"


settings = Settings()
