from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Dict, Optional

import openai
from openai import AsyncOpenAI

from ...config.constants import TITLE_INSTRUCTIONS, TITLE_MAX_CHARS
from ...config.models import resolve_chat_model
from ...config.settings import Settings
from ...core.normalization.usage import usage_to_dict
from ...observability.logging import StreamLogger
from ..base import FinalResult, ProviderError, UpstreamSubscription
from ..errors import ErrorMapper
from .parsers import extract_text_from_response

logger = StreamLogger("openai")


class OpenAIResponseSubscription(UpstreamSubscription):
    """An open Responses API stream."""

    def __init__(self, manager: Any):
        self._manager = manager
        self._stack = AsyncExitStack()
        self._stream: Any = None

    async def open(self) -> "OpenAIResponseSubscription":
        self._stream = await self._stack.enter_async_context(self._manager)
        return self

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        if self._stream is None:
            raise RuntimeError("Subscription has not been opened")
        try:
            async for event in self._stream:
                yield event
        except openai.APIError as e:
            raise ErrorMapper.map_openai_error(e) from e

    async def final(self) -> FinalResult:
        response = await self._stream.get_final_response()
        return FinalResult(
            model=getattr(response, "model", None),
            usage=usage_to_dict(getattr(response, "usage", None)),
            response=response,
        )

    async def close(self) -> None:
        await self._stack.aclose()


class OpenAIResponsesProvider:
    """OpenAI Responses API access for the chat pipeline."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ProviderError("OpenAI API key not found in environment variables", provider="openai")
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.openai_timeout,
            )
        return self._client

    def is_available(self) -> bool:
        return self._client is not None or bool(self.settings.openai_api_key)

    async def open_stream(self, payload: Dict[str, Any]) -> OpenAIResponseSubscription:
        """Start streaming a response for ``payload``."""
        payload = {key: value for key, value in payload.items() if key != "stream"}
        logger.debug("Opening response stream", model=payload.get("model"))
        try:
            return await OpenAIResponseSubscription(self.client.responses.stream(**payload)).open()
        except openai.APIError as e:
            raise ErrorMapper.map_openai_error(e) from e

    async def generate(self, payload: Dict[str, Any]) -> Any:
        """Create a non-streaming response."""
        payload = {key: value for key, value in payload.items() if key != "stream"}
        try:
            return await self.client.responses.create(**payload)
        except openai.APIError as e:
            raise ErrorMapper.map_openai_error(e) from e

    async def generate_title(self, text: str) -> str:
        """Generate a short chat title from the first user message."""
        response = await self.generate({
            "model": resolve_chat_model("title-model"),
            "instructions": TITLE_INSTRUCTIONS,
            "input": text,
        })
        title = extract_text_from_response(response).strip().strip('"')
        return title[:TITLE_MAX_CHARS] or "New chat"
