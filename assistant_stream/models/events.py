"""Event models for the outward chat stream protocol.

Each event serializes to one JSON object per server-sent-event frame via
``to_dict()``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Union

from .usage import UsageSummary

BlockKind = Literal["text", "reasoning"]


@dataclass
class ProtocolEvent:
    """Base class for all outward protocol events."""
    type: str = ""  # Will be set by subclasses

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass
class StartEvent(ProtocolEvent):
    """Emitted once when an assistant turn begins."""
    type: str = field(default="start", init=False)


@dataclass
class BlockStartEvent(ProtocolEvent):
    """Opens a text or reasoning block."""
    type: str = field(default="", init=False)
    kind: BlockKind = "text"
    id: str = ""

    def __post_init__(self):
        self.type = f"{self.kind}-start"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id}


@dataclass
class BlockDeltaEvent(ProtocolEvent):
    """Carries an incremental fragment for an open block."""
    type: str = field(default="", init=False)
    kind: BlockKind = "text"
    id: str = ""
    delta: str = ""

    def __post_init__(self):
        self.type = f"{self.kind}-delta"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id, "delta": self.delta}


@dataclass
class BlockEndEvent(ProtocolEvent):
    """Closes a previously started block."""
    type: str = field(default="", init=False)
    kind: BlockKind = "text"
    id: str = ""

    def __post_init__(self):
        self.type = f"{self.kind}-end"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id}


@dataclass
class UsageDataEvent(ProtocolEvent):
    """Token usage (and cost, when known) for the finished turn."""
    type: str = field(default="data-usage", init=False)
    data: UsageSummary = field(default_factory=UsageSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": self.data.to_wire()}


@dataclass
class FinishEvent(ProtocolEvent):
    """Terminal marker for a successful turn."""
    type: str = field(default="finish", init=False)


@dataclass
class ErrorEvent(ProtocolEvent):
    """Terminal marker for a failed turn."""
    type: str = field(default="error", init=False)
    error_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "errorText": self.error_text}


StreamEvent = Union[
    StartEvent,
    BlockStartEvent,
    BlockDeltaEvent,
    BlockEndEvent,
    UsageDataEvent,
    FinishEvent,
    ErrorEvent,
]

TERMINAL_EVENT_TYPES = ("finish", "error")
