"""
Mapping of OpenAI SDK failures to ProviderError.

Only the failures the adapter can actually see are classified here: the
SDK's status errors, its connection and timeout errors, and raw httpx
transport errors raised while a stream is being read.
"""

from typing import Optional

import httpx
import openai

from .base import ProviderError

# Upstream statuses worth retrying with the same request
RETRYABLE_STATUS_CODES = frozenset({408, 409, 429, 500, 502, 503, 504})

# Exception types that never reached a response
TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
)


class ErrorMapper:
    """Turns OpenAI SDK exceptions into ProviderError with retry metadata."""

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        if isinstance(error, TRANSIENT_ERRORS):
            return True
        if isinstance(error, openai.APIStatusError):
            return error.status_code in RETRYABLE_STATUS_CODES
        status_code = getattr(error, "status_code", None)
        if status_code in RETRYABLE_STATUS_CODES:
            return True
        # Some proxies report throttling only in the message text
        text = str(error).lower()
        return "rate limit" in text or "too many requests" in text

    @staticmethod
    def get_retry_after(error: Exception) -> Optional[float]:
        """Seconds from a ``retry-after`` response header, when one was sent."""
        response = getattr(error, "response", None)
        value = getattr(response, "headers", {}).get("retry-after") if response is not None else None
        if not value:
            return None
        try:
            return max(float(value), 0.0)
        except ValueError:
            return None

    @staticmethod
    def map_openai_error(error: Exception) -> ProviderError:
        """Wrap an SDK exception, keeping its status, upstream error code and request id."""
        message = getattr(error, "message", None) or str(error) or type(error).__name__

        mapped = ProviderError(
            message=f"OpenAI API error: {message}",
            provider="openai",
            status_code=getattr(error, "status_code", None),
            retry_after=ErrorMapper.get_retry_after(error),
        )
        mapped.code = getattr(error, "code", None)
        mapped.request_id = getattr(error, "request_id", None)
        mapped.is_retryable = ErrorMapper.is_retryable(error)
        mapped.original_error = error
        return mapped
