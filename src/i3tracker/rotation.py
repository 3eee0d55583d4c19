"""Choose which of a bounded set of log files a session appends to."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import LogIOError
from .paths import log_file_name

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LogFileInfo:
    index: int
    path: Path
    modified: datetime


@dataclass(slots=True, frozen=True)
class RotationChoice:
    index: int
    path: Path
    evicted: Optional[Path] = None


def _name_pattern(base_name: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(base_name)}\.log\.(\d+)$")


def list_log_files(data_dir: Path, base_name: str) -> list[LogFileInfo]:
    """Return the rotated logs in ``data_dir``, ordered by rotation index."""
    pattern = _name_pattern(base_name)
    files: list[LogFileInfo] = []
    try:
        entries = list(Path(data_dir).iterdir())
    except FileNotFoundError:
        return files
    except OSError as exc:
        raise LogIOError(f"Cannot list {data_dir}: {exc}") from exc

    for path in entries:
        match = pattern.match(path.name)
        if not match or not path.is_file():
            continue
        try:
            mtime = path.stat().st_mtime
        except OSError as exc:
            raise LogIOError(f"Cannot stat {path}: {exc}") from exc
        files.append(
            LogFileInfo(index=int(match.group(1)), path=path, modified=datetime.fromtimestamp(mtime))
        )
    files.sort(key=lambda info: info.index)
    return files


def select_log(data_dir: Path, limit: int, base_name: str) -> RotationChoice:
    """Pick the rotation slot for a new session without touching the disk."""
    data_dir = Path(data_dir)
    files = list_log_files(data_dir, base_name)
    if len(files) < limit:
        index = len(files)
        return RotationChoice(index=index, path=data_dir / log_file_name(index, base_name))

    oldest = min(files, key=lambda info: (info.modified, info.index))
    return RotationChoice(index=oldest.index, path=oldest.path, evicted=oldest.path)


def rotate(data_dir: Path, limit: int, base_name: str) -> RotationChoice:
    """Select the session's log file.

    The evicted file is left in place; its contents are discarded by the
    writer once it holds the file's lock.
    """
    choice = select_log(data_dir, limit, base_name)
    if choice.evicted is not None:
        logger.info("Log limit %d reached; reusing %s", limit, choice.evicted)
    logger.info("Current log is %s", choice.path)
    return choice
