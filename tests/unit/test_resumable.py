"""Unit tests for SSE framing and resumable delivery."""

import asyncio

import pytest
from unittest.mock import MagicMock

from assistant_stream.config.settings import Settings
from assistant_stream.models.events import ErrorEvent, StartEvent
from assistant_stream.streaming.resumable import (
    InMemoryStreamStore,
    RedisStreamStore,
    ResumableStreamContext,
    create_stream_context
)
from assistant_stream.streaming.sse import encode_sse, to_sse
from tests.helpers.streaming_mocks import collect


async def frames_from(items, delay=0.0):
    for item in items:
        if delay:
            await asyncio.sleep(delay)
        yield item


class TestSSE:
    """Test frame encoding."""

    def test_encode_event(self):
        assert encode_sse(StartEvent()) == 'data: {"type":"start"}\n\n'

    def test_encode_keeps_unicode(self):
        assert encode_sse(ErrorEvent(error_text="échec")) == 'data: {"type":"error","errorText":"échec"}\n\n'

    @pytest.mark.asyncio
    async def test_to_sse_appends_done(self):
        frames = await collect(to_sse(frames_from([StartEvent()])))

        assert frames == ['data: {"type":"start"}\n\n', "data: [DONE]\n\n"]


class TestInMemoryStreamStore:
    """Test buffering and replay."""

    @pytest.mark.asyncio
    async def test_create_is_exclusive(self):
        store = InMemoryStreamStore()

        assert await store.create("s1")
        assert not await store.create("s1")

    @pytest.mark.asyncio
    async def test_read_replays_and_follows(self):
        store = InMemoryStreamStore()
        await store.create("s1")
        await store.append("s1", "a")

        reader = asyncio.create_task(collect(store.read("s1")))
        await asyncio.sleep(0)
        await store.append("s1", "b")
        await store.mark_done("s1")

        assert await reader == ["a", "b"]
        assert await store.is_done("s1")

    @pytest.mark.asyncio
    async def test_read_from_offset(self):
        store = InMemoryStreamStore()
        await store.create("s1")
        for frame in ("a", "b", "c"):
            await store.append("s1", frame)
        await store.mark_done("s1")

        assert await collect(store.read("s1", 2)) == ["c"]

    @pytest.mark.asyncio
    async def test_discard(self):
        store = InMemoryStreamStore()
        await store.create("s1")
        store.discard("s1")

        assert not await store.exists("s1")

    @pytest.mark.asyncio
    async def test_done_stream_expires_after_ttl(self):
        now = [100.0]
        store = InMemoryStreamStore(ttl_seconds=60, clock=lambda: now[0])
        await store.create("s1")
        await store.append("s1", "a")
        await store.mark_done("s1")

        now[0] += 59
        assert await store.exists("s1")

        now[0] += 1
        assert not await store.exists("s1")
        assert store._streams == {}

    @pytest.mark.asyncio
    async def test_live_stream_is_not_expired(self):
        now = [0.0]
        store = InMemoryStreamStore(ttl_seconds=1, clock=lambda: now[0])
        await store.create("s1")

        now[0] += 3600

        assert await store.exists("s1")
        assert not await store.is_done("s1")


class TestResumableStreamContext:
    """Test producer lifecycle and readers."""

    @pytest.mark.asyncio
    async def test_reader_receives_all_frames(self):
        context = ResumableStreamContext(InMemoryStreamStore())

        reader = await context.resumable_stream("s1", lambda: frames_from(["a", "b", "c"], delay=0.001))

        assert await collect(reader) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_producer_runs_once(self):
        context = ResumableStreamContext(InMemoryStreamStore())
        calls = []

        def make_stream():
            calls.append(1)
            return frames_from(["a", "b"], delay=0.001)

        first = await context.resumable_stream("s1", make_stream)
        second = await context.resumable_stream("s1", make_stream)

        assert await collect(first) == ["a", "b"]
        assert await collect(second) == ["a", "b"]
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_resume_from_offset_after_completion(self):
        context = ResumableStreamContext(InMemoryStreamStore())
        await context.resumable_stream("s1", lambda: frames_from(["a", "b", "c"]))
        await context.wait_closed()

        reader = await context.resume_existing_stream("s1", skip=1)

        assert await collect(reader) == ["b", "c"]

    @pytest.mark.asyncio
    async def test_resume_unknown_stream(self):
        context = ResumableStreamContext(InMemoryStreamStore())

        assert await context.resume_existing_stream("missing") is None

    @pytest.mark.asyncio
    async def test_producer_failure_ends_stream(self):
        context = ResumableStreamContext(InMemoryStreamStore())

        async def failing():
            yield "a"
            raise RuntimeError("boom")

        reader = await context.resumable_stream("s1", failing)

        assert await collect(reader) == ["a"]

    @pytest.mark.asyncio
    async def test_producer_continues_after_reader_leaves(self):
        context = ResumableStreamContext(InMemoryStreamStore())
        reader = await context.resumable_stream("s1", lambda: frames_from(["a", "b", "c"], delay=0.001))

        first = await reader.__anext__()
        await reader.aclose()
        await context.wait_closed()

        assert first == "a"
        assert await collect(await context.resume_existing_stream("s1")) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_finished_turns_are_evicted(self):
        now = [0.0]
        store = InMemoryStreamStore(ttl_seconds=30, clock=lambda: now[0])
        context = ResumableStreamContext(store)
        for n in range(50):
            await context.resumable_stream(f"s{n}", lambda: frames_from(["a", "b"]))
        await context.wait_closed()

        now[0] += 30

        assert await context.resume_existing_stream("s0") is None
        assert store._streams == {}


class FakeRedis:
    """Minimal async Redis stand-in for the list and string commands used by the store."""

    def __init__(self):
        self.values = {}
        self.lists = {}
        self.expirations = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        self.expirations[key] = ex
        return True

    async def get(self, key):
        return self.values.get(key)

    async def exists(self, key):
        return int(key in self.values)

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    async def expire(self, key, seconds):
        self.expirations[key] = seconds

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]


class TestRedisStreamStore:
    """Test the Redis-backed store against an in-memory stand-in."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        redis = FakeRedis()
        store = RedisStreamStore(redis, ttl_seconds=60, poll_interval=0.001)

        assert await store.create("s1")
        assert not await store.create("s1")
        await store.append("s1", "a")
        await store.append("s1", "b")
        await store.mark_done("s1")

        assert await collect(store.read("s1", 1)) == ["b"]
        assert await store.is_done("s1")
        assert redis.expirations["assistant-stream:s1:frames"] == 60

    @pytest.mark.asyncio
    async def test_reader_polls_until_done(self):
        store = RedisStreamStore(FakeRedis(), ttl_seconds=60, poll_interval=0.001)
        await store.create("s1")

        reader = asyncio.create_task(collect(store.read("s1")))
        await asyncio.sleep(0.005)
        await store.append("s1", "a")
        await store.mark_done("s1")

        assert await reader == ["a"]


class TestCreateStreamContext:
    """Test backend selection."""

    def test_memory(self):
        context = create_stream_context(Settings(resumable_streams="memory"))

        assert isinstance(context.store, InMemoryStreamStore)
        assert context.store.ttl_seconds == Settings().stream_ttl_seconds

    def test_disabled(self):
        assert create_stream_context(Settings(resumable_streams="none")) is None

    def test_redis_without_url_is_disabled(self):
        assert create_stream_context(Settings(resumable_streams="redis")) is None

    def test_redis_with_url(self, monkeypatch):
        from_url = MagicMock(return_value=FakeRedis())
        monkeypatch.setattr("assistant_stream.streaming.resumable.Redis.from_url", from_url)

        context = create_stream_context(
            Settings(resumable_streams="redis", redis_url="redis://localhost:6379/0")
        )

        assert isinstance(context.store, RedisStreamStore)
        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
