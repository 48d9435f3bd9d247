"""
Upstream event decoding.

Responses API stream events are decoded here, at the boundary, into a closed
set of UpstreamSignal kinds. The orchestrator only ever sees UpstreamSignal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SignalKind(str, Enum):
    TEXT_DELTA = "text_delta"
    TEXT_DONE = "text_done"
    REASONING_DELTA = "reasoning_delta"
    REASONING_DONE = "reasoning_done"
    RUN_FAILED = "run_failed"
    RUN_COMPLETED = "run_completed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class UpstreamSignal:
    """One decoded upstream lifecycle signal."""
    kind: SignalKind
    block_id: Optional[str] = None
    delta: str = ""
    message: Optional[str] = None
    status: Optional[str] = None
    raw_type: Optional[str] = None


def _field(event: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK event object or a plain dict."""
    if isinstance(event, dict):
        return event.get(name, default)
    return getattr(event, name, default)


def _block_id(event: Any, prefix: str) -> str:
    item_id = _field(event, "item_id")
    if item_id:
        return str(item_id)
    return f"{prefix}-{_field(event, 'output_index', 0)}"


def _summary_block_id(event: Any) -> str:
    return f"{_block_id(event, 'reasoning')}-summary-{_field(event, 'summary_index', 0)}"


def _failure_message(event: Any) -> Optional[str]:
    # `error` events carry the message directly; response.* events nest it
    message = _field(event, "message")
    if message:
        return str(message)
    response = _field(event, "response")
    error = _field(response, "error") if response is not None else None
    if error is not None:
        message = _field(error, "message")
        if message:
            return str(message)
    details = _field(response, "incomplete_details") if response is not None else None
    reason = _field(details, "reason") if details is not None else None
    if reason:
        return f"Response incomplete: {reason}"
    return None


_TEXT_EVENTS = {
    "response.output_text.delta": (SignalKind.TEXT_DELTA, "text"),
    "response.output_text.done": (SignalKind.TEXT_DONE, "text"),
    "response.reasoning_text.delta": (SignalKind.REASONING_DELTA, "reasoning"),
    "response.reasoning_text.done": (SignalKind.REASONING_DONE, "reasoning"),
}

_SUMMARY_EVENTS = {
    "response.reasoning_summary_text.delta": SignalKind.REASONING_DELTA,
    "response.reasoning_summary_text.done": SignalKind.REASONING_DONE,
}

_FAILURE_EVENTS = {
    "response.failed": "failed",
    "response.cancelled": "cancelled",
    "response.incomplete": "incomplete",
    "error": "failed",
}


def decode_signal(event: Any) -> UpstreamSignal:
    """
    Decode one upstream stream event.

    Args:
        event: Responses API stream event (SDK model or dict)

    Returns:
        UpstreamSignal; unrecognized event types decode to SignalKind.UNKNOWN
    """
    event_type = _field(event, "type")

    if event_type in _TEXT_EVENTS:
        kind, prefix = _TEXT_EVENTS[event_type]
        delta = _field(event, "delta") if kind in (SignalKind.TEXT_DELTA, SignalKind.REASONING_DELTA) else ""
        return UpstreamSignal(
            kind=kind,
            block_id=_block_id(event, prefix),
            delta=delta if isinstance(delta, str) else "",
            raw_type=event_type,
        )

    if event_type in _SUMMARY_EVENTS:
        kind = _SUMMARY_EVENTS[event_type]
        delta = _field(event, "delta") if kind is SignalKind.REASONING_DELTA else ""
        return UpstreamSignal(
            kind=kind,
            block_id=_summary_block_id(event),
            delta=delta if isinstance(delta, str) else "",
            raw_type=event_type,
        )

    if event_type in _FAILURE_EVENTS:
        return UpstreamSignal(
            kind=SignalKind.RUN_FAILED,
            message=_failure_message(event),
            status=_FAILURE_EVENTS[event_type],
            raw_type=event_type,
        )

    if event_type == "response.completed":
        return UpstreamSignal(kind=SignalKind.RUN_COMPLETED, raw_type=event_type)

    return UpstreamSignal(kind=SignalKind.UNKNOWN, raw_type=event_type)
