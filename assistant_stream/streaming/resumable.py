"""
Resumable delivery of SSE frames.

A producer task drains a turn's frame sequence into a StreamStore exactly
once; any number of readers (the original request and later reconnects) read
the buffered frames from an offset and then follow the live tail until the
producer marks the stream done.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable, Dict, List, Optional, Set

from redis.asyncio import Redis

from ..config.settings import Settings
from ..observability.logging import StreamLogger

logger = StreamLogger("resumable")

FrameFactory = Callable[[], AsyncIterator[str]]


class StreamStore(ABC):
    """Buffer of frames keyed by stream id."""

    @abstractmethod
    async def create(self, stream_id: str) -> bool:
        """Register a stream. Returns False if it already exists."""

    @abstractmethod
    async def append(self, stream_id: str, frame: str) -> None:
        pass

    @abstractmethod
    async def mark_done(self, stream_id: str) -> None:
        pass

    @abstractmethod
    async def exists(self, stream_id: str) -> bool:
        pass

    @abstractmethod
    async def is_done(self, stream_id: str) -> bool:
        pass

    @abstractmethod
    def read(self, stream_id: str, start: int = 0) -> AsyncIterator[str]:
        """Replay frames from ``start`` and follow new ones until done."""


class _MemoryStream:
    def __init__(self):
        self.frames: List[str] = []
        self.done = False
        self.expires_at: Optional[float] = None
        self.changed = asyncio.Condition()


class InMemoryStreamStore(StreamStore):
    """
    Process-local store.

    A finished stream is dropped ``ttl_seconds`` after it was marked done;
    expired streams are evicted whenever the store is looked up. Without a
    TTL, streams live until ``discard`` is called.
    """

    def __init__(self, ttl_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._streams: Dict[str, _MemoryStream] = {}

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            stream_id for stream_id, stream in self._streams.items()
            if stream.expires_at is not None and stream.expires_at <= now
        ]
        for stream_id in expired:
            del self._streams[stream_id]
        if expired:
            logger.debug("Evicted expired streams", count=len(expired))

    async def create(self, stream_id: str) -> bool:
        self._evict_expired()
        if stream_id in self._streams:
            return False
        self._streams[stream_id] = _MemoryStream()
        return True

    async def append(self, stream_id: str, frame: str) -> None:
        stream = self._streams[stream_id]
        async with stream.changed:
            stream.frames.append(frame)
            stream.changed.notify_all()

    async def mark_done(self, stream_id: str) -> None:
        stream = self._streams[stream_id]
        async with stream.changed:
            stream.done = True
            if self.ttl_seconds is not None:
                stream.expires_at = self._clock() + self.ttl_seconds
            stream.changed.notify_all()

    async def exists(self, stream_id: str) -> bool:
        self._evict_expired()
        return stream_id in self._streams

    async def is_done(self, stream_id: str) -> bool:
        self._evict_expired()
        stream = self._streams.get(stream_id)
        return stream is not None and stream.done

    def discard(self, stream_id: str) -> None:
        self._streams.pop(stream_id, None)

    async def read(self, stream_id: str, start: int = 0) -> AsyncIterator[str]:
        stream = self._streams[stream_id]
        position = max(start, 0)
        while True:
            async with stream.changed:
                while position >= len(stream.frames) and not stream.done:
                    await stream.changed.wait()
                pending = stream.frames[position:]
                finished = stream.done
            for frame in pending:
                yield frame
            position += len(pending)
            if finished and position >= len(stream.frames):
                return


class RedisStreamStore(StreamStore):
    """
    Redis-backed store, shared across processes.

    Frames are kept in a list per stream and a separate key marks completion;
    both expire after ``ttl_seconds``. Readers poll for new frames.
    """

    def __init__(self, redis, ttl_seconds: int, prefix: str = "assistant-stream",
                 poll_interval: float = 0.05):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix
        self.poll_interval = poll_interval

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisStreamStore":
        return cls(Redis.from_url(url, decode_responses=True), ttl_seconds)

    def _frames_key(self, stream_id: str) -> str:
        return f"{self.prefix}:{stream_id}:frames"

    def _state_key(self, stream_id: str) -> str:
        return f"{self.prefix}:{stream_id}:state"

    async def create(self, stream_id: str) -> bool:
        created = await self.redis.set(
            self._state_key(stream_id), "live", nx=True, ex=self.ttl_seconds
        )
        return bool(created)

    async def append(self, stream_id: str, frame: str) -> None:
        key = self._frames_key(stream_id)
        await self.redis.rpush(key, frame)
        await self.redis.expire(key, self.ttl_seconds)

    async def mark_done(self, stream_id: str) -> None:
        await self.redis.set(self._state_key(stream_id), "done", ex=self.ttl_seconds)

    async def exists(self, stream_id: str) -> bool:
        return bool(await self.redis.exists(self._state_key(stream_id)))

    async def is_done(self, stream_id: str) -> bool:
        return await self.redis.get(self._state_key(stream_id)) == "done"

    async def read(self, stream_id: str, start: int = 0) -> AsyncIterator[str]:
        key = self._frames_key(stream_id)
        position = max(start, 0)
        while True:
            # Check completion before reading so frames appended just before
            # the done marker are never missed
            finished = await self.is_done(stream_id)
            pending = await self.redis.lrange(key, position, -1)
            for frame in pending:
                yield frame
            position += len(pending)
            if finished:
                return
            if not pending:
                await asyncio.sleep(self.poll_interval)


class ResumableStreamContext:
    """Runs turn producers in the background and hands out readers by stream id."""

    def __init__(self, store: StreamStore):
        self.store = store
        self._tasks: Set[asyncio.Task] = set()

    async def resumable_stream(self, stream_id: str, make_stream: FrameFactory) -> AsyncIterator[str]:
        """
        Start (at most once) the producer for ``stream_id`` and return a reader.

        Args:
            stream_id: Unique id of the stream
            make_stream: Factory for the live frame sequence; only called when
                the stream does not exist yet

        Returns:
            Reader over every frame from the beginning
        """
        if await self.store.create(stream_id):
            task = asyncio.create_task(self._produce(stream_id, make_stream))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            logger.debug("Started stream producer", stream_id=stream_id)
        return self.store.read(stream_id, 0)

    async def resume_existing_stream(self, stream_id: str, skip: int = 0) -> Optional[AsyncIterator[str]]:
        """Reader starting at frame ``skip``, or None for an unknown stream id."""
        if not await self.store.exists(stream_id):
            return None
        return self.store.read(stream_id, skip)

    async def _produce(self, stream_id: str, make_stream: FrameFactory) -> None:
        frames = 0
        try:
            async for frame in make_stream():
                await self.store.append(stream_id, frame)
                frames += 1
        except Exception as e:
            logger.error("Stream producer failed", stream_id=stream_id, frames=frames, error=e)
        finally:
            await self.store.mark_done(stream_id)
            logger.debug("Stream producer finished", stream_id=stream_id, frames=frames)

    async def wait_closed(self) -> None:
        """Wait for all running producers to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def create_stream_context(settings: Settings) -> Optional[ResumableStreamContext]:
    """
    Build the resumable stream context for the configured backend.

    Returns None when resumable streams are disabled, in which case callers
    deliver the live frame sequence directly.
    """
    backend = settings.resumable_streams
    if backend == "none":
        return None
    if backend == "redis":
        if not settings.redis_url:
            logger.info(" > Resumable streams disabled: missing REDIS_URL")
            return None
        return ResumableStreamContext(
            RedisStreamStore.from_url(settings.redis_url, settings.stream_ttl_seconds)
        )
    return ResumableStreamContext(InMemoryStreamStore(ttl_seconds=settings.stream_ttl_seconds))
