"""Exceptions raised by the tracker, each mapped to a process exit status."""

from __future__ import annotations

import os


class TrackerError(Exception):
    """Base class for failures that should terminate the tracker."""

    exit_code: int = 1


class LogIOError(TrackerError):
    """The log file could not be opened, read or written."""

    exit_code = os.EX_IOERR


class LogLockedError(LogIOError):
    """Another tracker already holds the lock on the log file."""

    exit_code = os.EX_TEMPFAIL


class LogFormatError(TrackerError):
    """An existing log row could not be decoded."""

    exit_code = os.EX_DATAERR


class EventSourceError(TrackerError):
    """The window manager subscription could not be established or was lost."""

    exit_code = os.EX_UNAVAILABLE
