"""Helpers to start the tracker and wire its tasks together."""

from __future__ import annotations

import asyncio
import logging
import signal
from functools import partial
from typing import Callable, Optional, Protocol

from .collector import FocusCollector
from .config import TrackerSettings
from .listener import I3EventSource
from .logfile import LogWriter, initial_sequence_id
from .models import Flush, Message, SourceFailed
from .paths import get_data_dir
from .rotation import rotate
from .ticks import TickScheduler

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class EventSource(Protocol):
    async def run(self) -> None: ...


SourceFactory = Callable[["asyncio.Queue[Message]"], EventSource]


def prepare_log(settings: TrackerSettings) -> tuple[LogWriter, int]:
    """Rotate, lock the session's log file and recover the next sequence id."""
    data_dir = settings.data_dir or get_data_dir()
    logger.info("Setting up log in %s", data_dir)
    choice = rotate(data_dir, settings.log_limit, settings.base_name)
    writer = LogWriter.open(choice.path, truncate=choice.evicted is not None)
    try:
        next_id = initial_sequence_id(choice.path)
    except BaseException:
        writer.close()
        raise
    logger.info("Next id from logs is %s", next_id)
    return writer, next_id


def _report_source_exit(queue: "asyncio.Queue[Message]", task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Event source failed: %s", error)
        queue.put_nowait(SourceFailed(error))
    else:
        queue.put_nowait(Flush(reason="event source closed"))


async def track(
    settings: TrackerSettings,
    source_factory: Optional[SourceFactory] = None,
) -> None:
    """Run the tracker until a flush request or a fatal error."""
    writer, next_id = prepare_log(settings)
    with writer:
        queue: "asyncio.Queue[Message]" = asyncio.Queue()
        scheduler = TickScheduler(queue, settings.heartbeat_seconds)
        collector = FocusCollector(writer, next_id, scheduler, queue=queue)

        loop = asyncio.get_running_loop()
        for signum in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(
                signum, queue.put_nowait, Flush(reason=signal.Signals(signum).name)
            )

        source = (source_factory or I3EventSource)(queue)
        listener = asyncio.create_task(source.run(), name="i3-listener")
        listener.add_done_callback(partial(_report_source_exit, queue))
        try:
            await collector.run()
        finally:
            for signum in SHUTDOWN_SIGNALS:
                loop.remove_signal_handler(signum)
            listener.cancel()
            scheduler.cancel_all()
            await asyncio.gather(listener, return_exceptions=True)


def run_tracker(settings: Optional[TrackerSettings] = None) -> None:
    asyncio.run(track(settings or TrackerSettings()))
