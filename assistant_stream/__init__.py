"""
Assistant Stream - OpenAI Responses streams translated into a normalized SSE protocol.

This package provides:
- A delta tracker and stream orchestrator producing well-formed
  start / block / data-usage / finish / error events
- Usage normalization and cost enrichment from a cached model catalog
- SSE framing with resumable delivery (in-memory or Redis)
- A chat service and FastAPI surface wiring it all together
"""

__version__ = "0.1.0"

from .chat import ChatSDKError, ChatService, InMemoryChatRepository
from .config import Settings, load_settings
from .core.normalization import normalize_usage
from .core.pricing import CatalogCache, ModelCatalog, UsageEnricher
from .models import ProtocolEvent, UsageSummary
from .providers.openai import OpenAIResponsesProvider
from .streaming import (
    DeltaTracker,
    StreamOrchestrator,
    create_stream_context,
    decode_signal,
    to_sse
)

__all__ = [
    "ChatSDKError",
    "ChatService",
    "InMemoryChatRepository",
    "Settings",
    "load_settings",
    "normalize_usage",
    "CatalogCache",
    "ModelCatalog",
    "UsageEnricher",
    "ProtocolEvent",
    "UsageSummary",
    "OpenAIResponsesProvider",
    "DeltaTracker",
    "StreamOrchestrator",
    "create_stream_context",
    "decode_signal",
    "to_sse"
]
