"""CSV log layer for focus intervals."""

from __future__ import annotations

import csv
import fcntl
import logging
import os
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import IO, Iterator, Optional

from .errors import LogFormatError, LogIOError, LogLockedError
from .models import ActiveRecord, LogEntry, NodeType

logger = logging.getLogger(__name__)

DATETIME_FMT = "%Y-%m-%d %H:%M:%S"

FIELDNAMES = (
    "id",
    "start_time",
    "end_time",
    "duration",
    "window_id",
    "window_title",
    "window_class",
    "node_type",
    "output",
    "role",
)


def build_entry(sequence_id: int, record: ActiveRecord, now: datetime) -> LogEntry:
    """Close ``record`` at ``now`` and describe it as a log row."""
    elapsed = now - record.start_time
    window = record.window
    return LogEntry(
        sequence_id=sequence_id,
        start_time=record.start_time.strftime(DATETIME_FMT),
        end_time=now.strftime(DATETIME_FMT),
        duration_seconds=int(elapsed.total_seconds()),
        window_id=window.window_id,
        title=window.title,
        window_class=window.window_class,
        node_type=window.node_type,
        output=window.output,
        role=window.role,
    )


def entry_to_row(entry: LogEntry) -> dict[str, object]:
    return {
        "id": entry.sequence_id,
        "start_time": entry.start_time,
        "end_time": entry.end_time,
        "duration": entry.duration_seconds,
        "window_id": entry.window_id,
        "window_title": entry.title or "",
        "window_class": entry.window_class or "",
        "node_type": entry.node_type.value,
        "output": entry.output or "",
        "role": entry.role or "",
    }


def row_to_entry(row: dict[str, Optional[str]]) -> LogEntry:
    try:
        return LogEntry(
            sequence_id=int(row["id"]),
            start_time=_required(row, "start_time"),
            end_time=_required(row, "end_time"),
            duration_seconds=int(row["duration"]),
            window_id=int(row["window_id"]),
            title=row.get("window_title") or None,
            window_class=row.get("window_class") or None,
            node_type=NodeType.from_value(row.get("node_type")),
            output=row.get("output") or None,
            role=row.get("role") or None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise LogFormatError(f"Malformed log row {row!r}: {exc}") from exc


def _required(row: dict[str, Optional[str]], key: str) -> str:
    value = row[key]
    if not value:
        raise ValueError(f"missing {key}")
    return value


def iter_entries(path: Path) -> Iterator[LogEntry]:
    """Yield every row of the log at ``path`` in file order."""
    with open(path, newline="", encoding="utf-8") as handle:
        for row in csv.DictReader(handle):
            yield row_to_entry(row)


def read_last_entry(path: Path) -> Optional[LogEntry]:
    """Return the last row of the log, or ``None`` when there is none.

    Raises ``LogFormatError`` if the last row cannot be decoded and
    ``LogIOError`` if an existing file cannot be read.
    """
    try:
        with open(path, newline="", encoding="utf-8") as handle:
            tail = deque(csv.DictReader(handle), maxlen=1)
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as exc:
        raise LogFormatError(f"Log {path} is not valid UTF-8") from exc
    except csv.Error as exc:
        raise LogFormatError(f"Log {path} is not valid CSV: {exc}") from exc
    except OSError as exc:
        raise LogIOError(f"Cannot read log {path}: {exc}") from exc
    if not tail:
        return None
    return row_to_entry(tail[0])


def initial_sequence_id(path: Path) -> int:
    """Return the first unused sequence id for the log at ``path``."""
    try:
        last = read_last_entry(path)
    except LogFormatError as exc:
        logger.warning("Ignoring unreadable tail of %s: %s", path, exc)
        return 1
    if last is None:
        return 1
    return last.sequence_id + 1


class LogWriter:
    """Appends rows to an exclusively locked log file, flushing each one."""

    def __init__(self, path: Path, handle: IO[str]) -> None:
        self.path = Path(path)
        self._handle = handle
        self._writer = csv.DictWriter(handle, fieldnames=FIELDNAMES)

    @classmethod
    def open(cls, path: Path, truncate: bool = False) -> "LogWriter":
        """Open and lock ``path`` for appending.

        With ``truncate`` the previous contents are discarded, but only once
        the lock is held.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(path, "a", newline="", encoding="utf-8")
        except OSError as exc:
            raise LogIOError(f"Cannot open log {path}: {exc}") from exc

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            handle.close()
            raise LogLockedError(f"Log {path} is locked by another tracker") from exc
        except OSError as exc:
            handle.close()
            raise LogIOError(f"Cannot lock log {path}: {exc}") from exc

        writer = cls(path, handle)
        try:
            if truncate:
                os.ftruncate(handle.fileno(), 0)
            if os.fstat(handle.fileno()).st_size == 0:
                writer._writer.writeheader()
                handle.flush()
        except OSError as exc:
            writer.close()
            raise LogIOError(f"Cannot reset {path}: {exc}") from exc
        logger.info("Appending to %s", path)
        return writer

    def write(self, entry: LogEntry) -> None:
        try:
            self._writer.writerow(entry_to_row(entry))
            self._handle.flush()
        except (OSError, ValueError) as exc:
            raise LogIOError(f"Cannot write to {self.path}: {exc}") from exc
        logger.debug(
            "Wrote row id=%s window=%s duration=%ss",
            entry.sequence_id,
            entry.window_id,
            entry.duration_seconds,
        )

    def close(self) -> None:
        if self._handle.closed:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()

    def __enter__(self) -> "LogWriter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
