"""
Upstream subscription interface.

The orchestrator consumes any object implementing UpstreamSubscription. The
OpenAI Responses adapter is the production implementation; tests use
in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional


@dataclass
class FinalResult:
    """Resolution of an upstream response once streaming has finished."""
    model: Optional[str] = None
    usage: Dict[str, Any] = field(default_factory=dict)
    response: Any = None


class UpstreamSubscription(ABC):
    """
    An in-progress upstream assistant response.

    Iterating yields raw upstream events in arrival order. ``final()`` may be
    awaited once iteration has ended. ``close()`` releases the underlying
    connection and must be safe to call more than once.
    """

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[Any]:
        pass

    @abstractmethod
    async def final(self) -> FinalResult:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


class ProviderError(Exception):
    """
    Upstream failure raised by a provider.

    ``code`` and ``request_id`` carry the upstream error code and request
    id when the provider reported them; ``is_retryable`` and
    ``original_error`` are filled in by ``ErrorMapper``.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.code: Optional[str] = None
        self.request_id: Optional[str] = None
        self.is_retryable = False
        self.original_error: Optional[BaseException] = None
