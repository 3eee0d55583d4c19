"""Domain models for focus tracking."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class NodeType(str, Enum):
    """Container types reported by i3 and sway."""

    ROOT = "root"
    OUTPUT = "output"
    CON = "con"
    FLOATING_CON = "floating_con"
    WORKSPACE = "workspace"
    DOCKAREA = "dockarea"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "NodeType":
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class ChangeKind(str, Enum):
    NEW = "new"
    FOCUS = "focus"
    TITLE = "title"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "ChangeKind":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(slots=True, frozen=True)
class WindowInfo:
    """Identity and metadata of a window as seen at one point in time."""

    window_id: int
    title: Optional[str] = None
    window_class: Optional[str] = None
    role: Optional[str] = None
    output: Optional[str] = None
    node_type: NodeType = NodeType.CON


@dataclass(slots=True, frozen=True)
class RawChangeEvent:
    """A window change notification as delivered by the window manager."""

    kind: ChangeKind
    window_id: int
    title: Optional[str] = None
    window_class: Optional[str] = None
    role: Optional[str] = None
    output: Optional[str] = None
    node_type: NodeType = NodeType.CON

    def window(self) -> WindowInfo:
        return WindowInfo(
            window_id=self.window_id,
            title=self.title,
            window_class=self.window_class,
            role=self.role,
            output=self.output,
            node_type=self.node_type,
        )


@dataclass(slots=True)
class ActiveRecord:
    """The focus interval that is currently open."""

    start_time: datetime
    window: WindowInfo

    def roll_forward(self, now: datetime) -> "ActiveRecord":
        return replace(self, start_time=now)


@dataclass(slots=True, frozen=True)
class LogEntry:
    """One persisted row of the focus log."""

    sequence_id: int
    start_time: str
    end_time: str
    duration_seconds: int
    window_id: int
    title: Optional[str]
    window_class: Optional[str]
    node_type: NodeType
    output: Optional[str]
    role: Optional[str]


# Messages consumed by the collector loop.


@dataclass(slots=True, frozen=True)
class WindowActivated:
    window: WindowInfo


@dataclass(slots=True, frozen=True)
class WindowRetitled:
    window: WindowInfo


@dataclass(slots=True, frozen=True)
class Tick:
    sequence_id: int


@dataclass(slots=True, frozen=True)
class Flush:
    reason: str = "shutdown"


@dataclass(slots=True, frozen=True)
class SourceFailed:
    error: BaseException


WindowMessage = Union[WindowActivated, WindowRetitled]
Message = Union[WindowActivated, WindowRetitled, Tick, Flush, SourceFailed]
