# gaia_storage/config.py
from functools import lru_cache
from typing import Optional
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Loads configuration from GAIA_* environment variables and a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="GAIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Hub & lookup ---
    HUB_URL: str = "https://hub.blockstack.org"
    ZONE_FILE_LOOKUP_URL: str = "https://core.blockstack.org"

    # --- App identity ---
    APP_DOMAIN: Optional[str] = None

    # --- HTTP ---
    HTTP_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: Optional[str] = None, handler: Optional[logging.Handler] = None) -> None:
    """Set the package log level; quiet the HTTP client loggers."""
    level_name = (level or get_settings().LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler] if handler else None,
    )
    logging.getLogger("gaia_storage").setLevel(log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
