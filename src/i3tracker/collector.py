"""Focus interval aggregation for i3 window events."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol

from .errors import EventSourceError
from .logfile import LogWriter, build_entry
from .models import (
    ActiveRecord,
    Flush,
    Message,
    SourceFailed,
    Tick,
    WindowActivated,
    WindowInfo,
    WindowRetitled,
)

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


class Scheduler(Protocol):
    def arm(self, sequence_id: int) -> None: ...


@dataclass(slots=True)
class CollectorState:
    next_id: int
    active: Optional[ActiveRecord] = None


class FocusCollector:
    """Owns the open focus interval and decides when it is written out.

    The collector is the only consumer of its queue and the only code that
    touches the open record, the sequence counter and the log writer.
    """

    def __init__(
        self,
        writer: LogWriter,
        next_id: int,
        scheduler: Scheduler,
        queue: Optional["asyncio.Queue[Message]"] = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.writer = writer
        self.queue: "asyncio.Queue[Message]" = queue if queue is not None else asyncio.Queue()
        self._scheduler = scheduler
        self._clock = clock
        self._state = CollectorState(next_id=next_id)

    @property
    def next_id(self) -> int:
        return self._state.next_id

    @property
    def active(self) -> Optional[ActiveRecord]:
        return self._state.active

    async def run(self) -> None:
        """Consume messages until a flush request has been handled."""
        logger.info("Collector started; next id is %s", self._state.next_id)
        while True:
            message = await self.queue.get()
            if not self.handle(message):
                logger.info("Collector stopped.")
                return

    def handle(self, message: Message) -> bool:
        """Apply one message. Returns ``False`` once the collector should stop."""
        if isinstance(message, (WindowActivated, WindowRetitled)):
            self._on_window(message.window)
        elif isinstance(message, Tick):
            self._on_tick(message.sequence_id)
        elif isinstance(message, Flush):
            self._on_flush(message.reason)
            return False
        elif isinstance(message, SourceFailed):
            raise EventSourceError(f"Window event source failed: {message.error}") from message.error
        else:
            raise TypeError(f"Unexpected message {message!r}")
        return True

    def _on_window(self, window: WindowInfo) -> None:
        state = self._state
        if state.active is not None and state.active.window == window:
            return

        now = self._clock()
        if state.active is not None:
            self.writer.write(build_entry(state.next_id, state.active, now))
            state.next_id += 1
        state.active = ActiveRecord(start_time=now, window=window)
        logger.debug("Window %s active as id %s", window.window_id, state.next_id)
        self._scheduler.arm(state.next_id)

    def _on_tick(self, sequence_id: int) -> None:
        state = self._state
        if sequence_id != state.next_id or state.active is None:
            logger.debug("Dropping stale tick %s (pending id %s)", sequence_id, state.next_id)
            return

        now = self._clock()
        self.writer.write(build_entry(state.next_id, state.active, now))
        state.active = state.active.roll_forward(now)
        self._scheduler.arm(sequence_id)

    def _on_flush(self, reason: str) -> None:
        state = self._state
        logger.info("Flushing open interval (%s).", reason)
        if state.active is not None:
            self.writer.write(build_entry(state.next_id, state.active, self._clock()))
            state.active = None
