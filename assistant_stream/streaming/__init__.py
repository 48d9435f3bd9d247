"""Stream translation layer.

This layer handles:
- Decoding upstream Responses API events into a closed set of signals
- Per-block start/delta/end tracking for text and reasoning
- Orchestrating one assistant turn into the outward protocol
- SSE framing and resumable delivery
"""

from .errors import StreamError, UpstreamRunError
from .orchestrator import StreamOrchestrator, StreamSession
from .resumable import (
    InMemoryStreamStore,
    RedisStreamStore,
    ResumableStreamContext,
    StreamStore,
    create_stream_context
)
from .signals import SignalKind, UpstreamSignal, decode_signal
from .sse import encode_sse, to_sse
from .tracker import BlockState, ContentBlock, DeltaTracker

__all__ = [
    "StreamError",
    "UpstreamRunError",
    "StreamOrchestrator",
    "StreamSession",
    "InMemoryStreamStore",
    "RedisStreamStore",
    "ResumableStreamContext",
    "StreamStore",
    "create_stream_context",
    "SignalKind",
    "UpstreamSignal",
    "decode_signal",
    "encode_sse",
    "to_sse",
    "BlockState",
    "ContentBlock",
    "DeltaTracker"
]
