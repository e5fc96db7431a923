"""Simple configuration management using .env."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from vinylvault.core.collection.artwork_scanner import DEFAULT_SCAN_DELAY
from vinylvault.core.data.database import get_db_path
from vinylvault.core.platform.itunes.api_client import ItunesApiClient
from vinylvault.core.utils.path_helper import get_app_config_path

ENV_PREFIX = "VINYLVAULT_"


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment."""

    db_path: Path
    scan_delay: float = DEFAULT_SCAN_DELAY
    lookup_url: str = ItunesApiClient.BASE_URL
    lookup_timeout: float = 10.0
    log_level: str = "INFO"


def load_env_file() -> Path | None:
    """Locate and load the first .env file found.

    Returns:
        Path of the loaded file, or None if there is none
    """
    possible_paths = [
        Path(".env"),
        Path(os.path.expanduser("~/.vinylvault/.env")),
        get_app_config_path() / ".env",
    ]

    for path in possible_paths:
        if path.exists():
            load_dotenv(path)
            logger.debug(f"Loaded .env file from {path}")
            return path

    logger.debug("No .env file found")
    return None


def _float_setting(name: str, default: float) -> float:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return default
    try:
        number = float(value)
    except ValueError:
        logger.warning(f"Invalid {ENV_PREFIX}{name}={value!r}, using {default}")
        return default
    if number < 0:
        logger.warning(f"Negative {ENV_PREFIX}{name}={value!r}, using {default}")
        return default
    return number


def load_settings() -> Settings:
    """Load settings from the environment (and .env, if present).

    Returns:
        Settings
    """
    load_env_file()

    db_path = os.getenv(ENV_PREFIX + "DB_PATH")
    return Settings(
        db_path=Path(db_path).expanduser() if db_path else get_db_path(),
        scan_delay=_float_setting("SCAN_DELAY", DEFAULT_SCAN_DELAY),
        lookup_url=os.getenv(ENV_PREFIX + "LOOKUP_URL") or ItunesApiClient.BASE_URL,
        lookup_timeout=_float_setting("LOOKUP_TIMEOUT", 10.0),
        log_level=(os.getenv(ENV_PREFIX + "LOG_LEVEL") or "INFO").upper(),
    )
