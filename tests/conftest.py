"""Shared fixtures for the tracker tests."""

from datetime import datetime, timedelta

import pytest

from i3tracker.logfile import LogWriter


class FakeClock:
    """Manually advanced replacement for ``datetime.now``."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingScheduler:
    """Collects armed tick ids instead of starting timers."""

    def __init__(self) -> None:
        self.armed: list[int] = []

    def arm(self, sequence_id: int) -> None:
        self.armed.append(sequence_id)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0))


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "i3tracker.log.0"


@pytest.fixture
def writer(log_path):
    log_writer = LogWriter.open(log_path)
    yield log_writer
    log_writer.close()
