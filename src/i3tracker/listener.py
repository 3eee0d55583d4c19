"""i3 IPC event source feeding the collector queue."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from i3ipc import Event
from i3ipc.aio import Connection

from .errors import EventSourceError
from .models import ChangeKind, Flush, Message, NodeType, RawChangeEvent, SourceFailed
from .normalization import EventNormalizer

logger = logging.getLogger(__name__)


def get_window_class(container: Any) -> Optional[str]:
    """Return the window class, preferring sway's ``app_id`` for Wayland clients."""
    app_id = getattr(container, "app_id", None)
    if app_id:
        return app_id

    window_class = getattr(container, "window_class", None)
    if window_class:
        return window_class

    properties = getattr(container, "window_properties", None)
    if isinstance(properties, dict):
        return properties.get("class") or None
    return None


def raw_event_from_i3(event: Any) -> RawChangeEvent:
    """Convert an ``i3ipc`` window event into a ``RawChangeEvent``."""
    container = event.container
    ipc_data = getattr(container, "ipc_data", None) or {}
    return RawChangeEvent(
        kind=ChangeKind.from_value(event.change),
        window_id=container.id,
        title=getattr(container, "name", None),
        window_class=get_window_class(container),
        role=getattr(container, "window_role", None),
        output=ipc_data.get("output"),
        node_type=NodeType.from_value(getattr(container, "type", None)),
    )


class I3EventSource:
    """Subscribes to i3 window events and forwards normalized transitions."""

    def __init__(
        self,
        queue: "asyncio.Queue[Message]",
        normalizer: Optional[EventNormalizer] = None,
    ) -> None:
        self._queue = queue
        self._normalizer = normalizer or EventNormalizer()
        self.conn: Optional[Connection] = None

    async def connect(self) -> Connection:
        try:
            conn = await Connection(auto_reconnect=True).connect()
            await conn.subscribe([Event.WINDOW, Event.SHUTDOWN])
        except Exception as exc:
            raise EventSourceError(f"Cannot connect to the window manager: {exc}") from exc
        conn.on(Event.WINDOW, self.on_window)
        conn.on(Event.SHUTDOWN, self.on_shutdown)
        self.conn = conn
        logger.info("Subscribed to window events.")
        return conn

    async def run(self) -> None:
        """Connect and dispatch events until the connection ends."""
        conn = self.conn or await self.connect()
        await conn.main()

    async def on_window(self, conn: Any, event: Any) -> None:
        try:
            raw = raw_event_from_i3(event)
        except Exception as exc:
            logger.exception("Cannot decode window event")
            await self._queue.put(SourceFailed(exc))
            return
        logger.debug("Window event %s for %s", raw.kind.value, raw.window_id)
        message = self._normalizer.feed(raw)
        if message is not None:
            await self._queue.put(message)

    async def on_shutdown(self, conn: Any, event: Any) -> None:
        change = getattr(event, "change", None)
        logger.info("Window manager shutdown (%s).", change)
        if change == "exit":
            await self._queue.put(Flush(reason="window manager exit"))
