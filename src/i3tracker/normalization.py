"""Turn raw window-manager notifications into focus transitions."""

from __future__ import annotations

import logging
from typing import Optional

from .models import ChangeKind, RawChangeEvent, WindowActivated, WindowMessage, WindowRetitled

logger = logging.getLogger(__name__)


class EventNormalizer:
    """Drops the spurious focus event i3 sends right after creating a window.

    A freshly mapped window produces ``new`` immediately followed by
    ``focus`` for the same id. That focus carries nothing the ``new`` did
    not, so it is swallowed. Any other focus or title change is passed on.
    """

    def __init__(self) -> None:
        self.pending_new_id: Optional[int] = None

    @property
    def awaiting_focus_confirmation(self) -> bool:
        return self.pending_new_id is not None

    def feed(self, event: RawChangeEvent) -> Optional[WindowMessage]:
        if event.kind is ChangeKind.NEW:
            self.pending_new_id = event.window_id
            return None

        if event.kind is ChangeKind.FOCUS:
            pending, self.pending_new_id = self.pending_new_id, None
            if pending == event.window_id:
                logger.debug("Suppressed focus following creation of window %s", event.window_id)
                return None
            return WindowActivated(event.window())

        if event.kind is ChangeKind.TITLE:
            self.pending_new_id = None
            return WindowRetitled(event.window())

        return None
