"""
Stream orchestration for one assistant turn.

The orchestrator drains an UpstreamSubscription, decodes every raw event into
an UpstreamSignal, routes text and reasoning signals through their delta
trackers, and yields outward protocol events in exactly the order they were
emitted. A turn ends in exactly one terminal event: ``finish`` or ``error``.
"""

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, List, Optional

from ..config.constants import RUN_FAILED_MESSAGE, UNKNOWN_STREAM_ERROR_MESSAGE
from ..core.normalization.usage import normalize_usage
from ..models.events import (
    TERMINAL_EVENT_TYPES,
    ErrorEvent,
    FinishEvent,
    ProtocolEvent,
    StartEvent,
    UsageDataEvent
)
from ..models.usage import UsageSummary
from ..observability.logging import StreamLogger
from ..providers.base import UpstreamSubscription
from .errors import UpstreamRunError
from .signals import SignalKind, UpstreamSignal, decode_signal
from .tracker import DeltaTracker

logger = StreamLogger("orchestrator")

UsageEnrichment = Callable[[UsageSummary, Optional[str]], Awaitable[UsageSummary]]
SubscriptionOpener = Callable[[], Awaitable[UpstreamSubscription]]


class StreamSession:
    """Mutable state of one assistant turn."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id
        self.outbox: List[ProtocolEvent] = []
        self.text = DeltaTracker("text", self.emit)
        self.reasoning = DeltaTracker("reasoning", self.emit)
        self.usage: Optional[UsageSummary] = None
        self.model_id: Optional[str] = None
        self.terminal: Optional[str] = None

    def emit(self, event: ProtocolEvent) -> None:
        """Queue an outward event. Nothing is queued once the turn is terminal."""
        if self.terminal is not None:
            logger.debug(
                "Dropping event after terminal state",
                request_id=self.request_id,
                event_type=event.type,
                terminal=self.terminal
            )
            return
        self.outbox.append(event)
        if event.type in TERMINAL_EVENT_TYPES:
            self.terminal = event.type

    def drain(self) -> List[ProtocolEvent]:
        events, self.outbox = self.outbox, []
        return events

    @property
    def finished(self) -> bool:
        return self.terminal == "finish"

    @property
    def errored(self) -> bool:
        return self.terminal == "error"


class StreamOrchestrator:
    """Drives one assistant turn from an upstream subscription to protocol events."""

    def __init__(
        self,
        subscription: Optional[UpstreamSubscription] = None,
        enricher: Optional[UsageEnrichment] = None,
        request_id: Optional[str] = None,
        opener: Optional[SubscriptionOpener] = None,
    ):
        """
        Args:
            subscription: Upstream response to consume
            enricher: Optional async mapping of usage to a cost summary
            request_id: Identifier used in log lines
            opener: Alternative to ``subscription``: opens the upstream after
                ``start`` has been emitted, so that failing to open it is
                reported as an ``error`` event of this turn
        """
        if subscription is None and opener is None:
            raise ValueError("Either subscription or opener is required")
        self.subscription = subscription
        self._opener = opener
        self.enricher = enricher
        self.request_id = request_id
        self.session = StreamSession(request_id=request_id)

    async def events(self) -> AsyncIterator[ProtocolEvent]:
        """
        Yield the outward protocol events for this turn.

        Raises:
            UpstreamRunError: The upstream reported a failed or cancelled run
                (after the ``error`` event has been yielded)
            Exception: Any unexpected failure, re-raised after the ``error``
                event has been yielded
        """
        session = self.session
        try:
            session.emit(StartEvent())
            for event in session.drain():
                yield event

            if self.subscription is None:
                self.subscription = await self._opener()

            async for raw_event in self.subscription:
                self._dispatch(decode_signal(raw_event))
                for event in session.drain():
                    yield event

            await self._complete()
            for event in session.drain():
                yield event

        except Exception as e:
            if session.terminal is None:
                self._close_blocks()
                session.emit(ErrorEvent(error_text=str(e) or UNKNOWN_STREAM_ERROR_MESSAGE))
            for event in session.drain():
                yield event
            raise

        finally:
            await self._release()

    def _dispatch(self, signal: UpstreamSignal) -> None:
        session = self.session
        kind = signal.kind

        if kind is SignalKind.TEXT_DELTA:
            session.text.write_delta(signal.block_id, signal.delta)
        elif kind is SignalKind.TEXT_DONE:
            session.text.finish(signal.block_id)
        elif kind is SignalKind.REASONING_DELTA:
            session.reasoning.write_delta(signal.block_id, signal.delta)
        elif kind is SignalKind.REASONING_DONE:
            session.reasoning.finish(signal.block_id)
        elif kind is SignalKind.RUN_FAILED:
            self._close_blocks()
            session.emit(ErrorEvent(error_text=signal.message or RUN_FAILED_MESSAGE))
            raise UpstreamRunError(
                signal.message or f"Assistant run ended with status: {signal.status}",
                status=signal.status,
            )
        elif kind is SignalKind.RUN_COMPLETED:
            # Final usage is read from the subscription once iteration ends
            pass
        elif kind is SignalKind.UNKNOWN:
            pass

    def _close_blocks(self) -> None:
        self.session.text.finish_all()
        self.session.reasoning.finish_all()

    async def _complete(self) -> None:
        session = self.session
        self._close_blocks()

        final = await self.subscription.final()
        usage = normalize_usage(final.usage)
        if final.model:
            usage = usage.model_copy(update={"model_id": final.model})
        session.model_id = final.model
        session.usage = usage

        publish_usage = True
        if self.enricher is not None:
            try:
                session.usage = await self.enricher(usage, final.model)
            except Exception as e:
                publish_usage = False
                logger.warning("Usage enrichment failed", request_id=self.request_id, error=e)

        if publish_usage:
            session.emit(UsageDataEvent(data=session.usage))
        session.emit(FinishEvent())
        logger.log_usage(session.usage, request_id=self.request_id)

    async def _release(self) -> None:
        if self.subscription is None:
            return
        try:
            await self.subscription.close()
        except Exception as e:
            logger.warning("Failed to release upstream subscription", request_id=self.request_id, error=e)
