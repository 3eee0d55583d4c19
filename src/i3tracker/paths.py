"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs

from .config import LOG_BASE_NAME


APP_NAME = "i3tracker"


def get_data_dir() -> Path:
    """Return the base directory for persistent data."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=False)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def log_file_name(index: int, base_name: str = LOG_BASE_NAME) -> str:
    return f"{base_name}.log.{index}"
