"""
Structured logging for the stream pipeline.

Messages are prefixed with ``[component=... key=value ...]`` so that one
turn can be followed across the orchestrator, the resumable store and the
chat service by grepping for its ``request_id`` or ``chat_id``.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Optional

from ..models.usage import UsageSummary


class StreamLogger:
    """Logger bound to one pipeline component (``assistant_stream.<component>``)."""

    def __init__(self, component: str):
        self.component = component
        self.logger = logging.getLogger(f"assistant_stream.{component}")

    def _emit(self, level: int, message: str, error: Optional[BaseException] = None, **fields):
        if not self.logger.isEnabledFor(level):
            return
        if error is not None:
            fields["error_type"] = type(error).__name__
            fields["error_msg"] = str(error)
        prefix = " ".join(
            [f"component={self.component}"]
            + [f"{key}={value}" for key, value in fields.items() if value is not None]
        )
        self.logger.log(level, "[%s] %s", prefix, message)

    def debug(self, message: str, request_id: Optional[str] = None, **fields):
        self._emit(logging.DEBUG, message, request_id=request_id, **fields)

    def info(self, message: str, request_id: Optional[str] = None, **fields):
        self._emit(logging.INFO, message, request_id=request_id, **fields)

    def warning(self, message: str, request_id: Optional[str] = None,
                error: Optional[BaseException] = None, **fields):
        self._emit(logging.WARNING, message, error=error, request_id=request_id, **fields)

    def error(self, message: str, request_id: Optional[str] = None,
              error: Optional[BaseException] = None, **fields):
        self._emit(logging.ERROR, message, error=error, request_id=request_id, **fields)

    @contextmanager
    def track_turn(self, name: str, request_id: Optional[str] = None, **fields):
        """
        Time a block of work and log how it ended.

        Logs ``Completed <name>`` at info level with ``duration_ms``, or
        ``Failed <name>`` at error level before re-raising. Yields the
        request id in use, generating a short one when none is given.
        """
        request_id = request_id or uuid.uuid4().hex[:8]
        started = time.monotonic()
        self.debug(f"Starting {name}", request_id=request_id, **fields)
        try:
            yield request_id
        except Exception as exc:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            self.error(f"Failed {name}", request_id=request_id, error=exc,
                       duration_ms=elapsed_ms, **fields)
            raise
        elapsed_ms = int((time.monotonic() - started) * 1000)
        self.info(f"Completed {name}", request_id=request_id, duration_ms=elapsed_ms, **fields)

    def log_usage(self, usage: UsageSummary, request_id: Optional[str] = None):
        cost = usage.total_cost_usd
        self.info(
            "Token usage",
            request_id=request_id,
            model=usage.model_id,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            total_tokens=usage.total_tokens,
            cached_input_tokens=usage.cached_input_tokens or None,
            cost_usd=None if cost is None else f"{cost:.6f}",
        )
