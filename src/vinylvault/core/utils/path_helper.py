"""Utilities for working with file paths."""

from pathlib import Path

import appdirs

APP_NAME = "vinylvault"
APP_AUTHOR = "vinylvault"


def get_app_data_path() -> Path:
    """Get the application data directory path.

    Creates the directory if it doesn't exist.

    Returns:
        Path: The application data directory path
    """
    app_data_dir = Path(appdirs.user_data_dir(APP_NAME, APP_AUTHOR))
    app_data_dir.mkdir(parents=True, exist_ok=True)
    return app_data_dir


def get_app_config_path() -> Path:
    """Get the application config directory path.

    Creates the directory if it doesn't exist.

    Returns:
        Path: The application config directory path
    """
    app_config_dir = Path(appdirs.user_config_dir(APP_NAME, APP_AUTHOR))
    app_config_dir.mkdir(parents=True, exist_ok=True)
    return app_config_dir


def get_app_log_path() -> Path:
    """Get the application log directory path.

    Creates the directory if it doesn't exist.

    Returns:
        Path: The application log directory path
    """
    app_log_dir = Path(appdirs.user_log_dir(APP_NAME, APP_AUTHOR))
    app_log_dir.mkdir(parents=True, exist_ok=True)
    return app_log_dir


def dated_filename(prefix: str, suffix: str, when: str) -> str:
    """Build an export file name carrying the export date.

    Args:
        prefix: File name prefix (e.g. ``vinyl-vault-backup-``)
        suffix: File extension including the dot
        when: ISO date (``YYYY-MM-DD``)

    Returns:
        File name such as ``vinyl-vault-backup-2024-03-25.json``
    """
    return f"{prefix}{when}{suffix}"
