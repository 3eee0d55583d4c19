"""Delayed heartbeat tokens for open focus intervals."""

from __future__ import annotations

import asyncio
import logging

from .models import Message, Tick

logger = logging.getLogger(__name__)


class TickScheduler:
    """Sends ``Tick(sequence_id)`` into the collector queue after a delay.

    Each armed tick is its own short-lived task. Ticks are never cancelled
    while the tracker runs; the collector discards the ones that went stale.
    """

    def __init__(self, queue: "asyncio.Queue[Message]", delay: float) -> None:
        self._queue = queue
        self.delay = delay
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def arm(self, sequence_id: int) -> None:
        task = asyncio.get_running_loop().create_task(
            self._fire(sequence_id), name=f"tick-{sequence_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fire(self, sequence_id: int) -> None:
        await asyncio.sleep(self.delay)
        logger.debug("Tick for id %s", sequence_id)
        await self._queue.put(Tick(sequence_id))

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
