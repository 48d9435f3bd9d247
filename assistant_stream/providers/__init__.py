"""Upstream providers."""

from .base import FinalResult, ProviderError, UpstreamSubscription
from .errors import ErrorMapper

__all__ = [
    "FinalResult",
    "ProviderError",
    "UpstreamSubscription",
    "ErrorMapper"
]
