"""Shared pytest fixtures for assistant stream tests."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from assistant_stream.chat.repository import InMemoryChatRepository
from assistant_stream.chat.service import ChatService
from assistant_stream.config.settings import Settings
from assistant_stream.core.pricing.catalog import CatalogCache
from assistant_stream.models.chat import Session, SessionUser, UserType
from assistant_stream.providers.openai.adapter import OpenAIResponsesProvider
from assistant_stream.streaming.resumable import InMemoryStreamStore, ResumableStreamContext
from tests.helpers.streaming_mocks import FakeSubscription, text_delta, text_done


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: tests exercising the HTTP surface")
    config.addinivalue_line("markers", "slow: slow tests")


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    env_vars = {
        "OPENAI_API_KEY": "test-openai-key",
        "RESUMABLE_STREAMS": "memory",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings():
    """Settings with a fake key and the bundled pricing catalog."""
    return Settings(openai_api_key="test-openai-key", resumable_streams="memory")


@pytest.fixture
def catalog_cache():
    """Catalog cache backed by the bundled catalog (no network)."""
    return CatalogCache()


@pytest.fixture
def repository():
    return InMemoryChatRepository()


@pytest.fixture
def stream_context():
    return ResumableStreamContext(InMemoryStreamStore())


@pytest.fixture
def hello_subscription():
    """Upstream response streaming "Hello" in two deltas."""
    return FakeSubscription([text_delta("Hel"), text_delta("lo"), text_done()])


@pytest.fixture
def mock_provider(hello_subscription):
    """Mock OpenAI provider whose streams say "Hello"."""
    provider = MagicMock(spec=OpenAIResponsesProvider)
    provider.open_stream = AsyncMock(return_value=hello_subscription)
    provider.generate = AsyncMock(return_value={"id": "resp_1", "output_text": "Hi"})
    provider.generate_title = AsyncMock(return_value="Greeting")
    return provider


@pytest.fixture
def document_loader():
    async def load(url, media_type, name):
        return f"[Document {name}]\ncontents of {name}"
    return AsyncMock(side_effect=load)


@pytest.fixture
def chat_service(settings, mock_provider, repository, stream_context, catalog_cache, document_loader):
    """Chat service wired to in-memory collaborators."""
    ids = iter(f"id-{n}" for n in range(1000))
    return ChatService(
        settings=settings,
        provider=mock_provider,
        repository=repository,
        stream_context=stream_context,
        catalog=catalog_cache,
        document_loader=document_loader,
        id_factory=lambda: next(ids),
    )


@pytest.fixture
def user_session():
    return Session(user=SessionUser(id="user-1", type=UserType.REGULAR))


@pytest.fixture
def guest_session():
    return Session(user=SessionUser(id="guest-1", type=UserType.GUEST))


@pytest.fixture
def make_chat_body():
    """Factory for chat turn request bodies."""
    def make(chat_id="chat-1", text="Say hello", message_id="msg-1", parts=None, **overrides):
        body = {
            "id": chat_id,
            "message": {
                "id": message_id,
                "role": "user",
                "parts": parts if parts is not None else [{"type": "text", "text": text}],
            },
            "selectedChatModel": "chat-model",
            "selectedVisibilityType": "private",
        }
        body.update(overrides)
        return body
    return make
