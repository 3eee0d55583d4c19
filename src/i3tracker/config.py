"""Configuration models and helpers for the focus tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

LOG_BASE_NAME = "i3tracker"


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the focus tracker."""

    heartbeat_interval: timedelta = timedelta(seconds=10)
    log_limit: int = 10
    base_name: str = LOG_BASE_NAME
    data_dir: Optional[Path] = None

    @property
    def heartbeat_seconds(self) -> float:
        return self.heartbeat_interval.total_seconds()

    @classmethod
    def from_values(
        cls,
        heartbeat_seconds: float,
        log_limit: int,
        data_dir: Optional[Path] = None,
    ) -> "TrackerSettings":
        if heartbeat_seconds <= 0:
            raise ValueError("heartbeat interval must be positive")
        if log_limit < 1:
            raise ValueError("log limit must be at least 1")
        return cls(
            heartbeat_interval=timedelta(seconds=heartbeat_seconds),
            log_limit=log_limit,
            data_dir=Path(data_dir) if data_dir is not None else None,
        )
