"""
Chat turn service.

Validates and authorizes a chat request, persists the user's message, and
returns the SSE frame sequence of the assistant turn. Each turn is assembled
statelessly: stored history plus the new message are sent as Responses API
input, so no upstream conversation state is kept.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from ..config.constants import ENTITLEMENTS_BY_USER_TYPE, RATE_LIMIT_WINDOW_HOURS
from ..config.models import CHAT_MODELS, resolve_chat_model
from ..config.settings import Settings
from ..core.pricing.catalog import CatalogCache, UsageEnricher
from ..models.chat import (
    Chat,
    ChatRequestBody,
    FilePart,
    MessageRecord,
    ProviderProxyRequest,
    Session,
    SessionUser
)
from ..models.events import ProtocolEvent
from ..observability.logging import StreamLogger
from ..providers.openai.adapter import OpenAIResponsesProvider
from ..providers.openai.payloads import build_responses_request, build_turn_input, build_user_content
from ..streaming.orchestrator import StreamOrchestrator, StreamSession
from ..streaming.resumable import ResumableStreamContext
from ..streaming.sse import to_sse
from .documents import extract_text_from_document
from .errors import ChatSDKError
from .repository import ChatRepository

logger = StreamLogger("chat")

DocumentLoader = Callable[[str, str, str], Awaitable[str]]


def generate_uuid() -> str:
    return str(uuid.uuid4())


def is_provider_proxy_request(payload: Any) -> bool:
    """True for ``{"mode": "provider-stream" | "provider-generate", "request": {...}}`` bodies."""
    if not isinstance(payload, dict):
        return False
    return (
        payload.get("mode") in ("provider-stream", "provider-generate")
        and isinstance(payload.get("request"), dict)
    )


def parse_chat_request(payload: Any) -> ChatRequestBody:
    """Validate a chat turn body, raising ``bad_request:api`` on any problem."""
    try:
        body = ChatRequestBody.model_validate(payload)
    except ValidationError as e:
        raise ChatSDKError("bad_request:api", cause=f"{e.error_count()} validation error(s)")
    if body.selected_chat_model is not None and body.selected_chat_model not in CHAT_MODELS:
        raise ChatSDKError("bad_request:api", cause=f"Unsupported model id: {body.selected_chat_model}")
    return body


def require_user(session: Optional[Session]) -> SessionUser:
    if session is None or session.user is None:
        raise ChatSDKError("unauthorized:chat")
    return session.user


class ChatService:
    """Entry point for chat turns, proxy requests, resumption and deletion."""

    def __init__(
        self,
        settings: Settings,
        provider: OpenAIResponsesProvider,
        repository: ChatRepository,
        stream_context: Optional[ResumableStreamContext] = None,
        catalog: Optional[CatalogCache] = None,
        document_loader: DocumentLoader = extract_text_from_document,
        id_factory: Callable[[], str] = generate_uuid,
    ):
        self.settings = settings
        self.provider = provider
        self.repository = repository
        self.stream_context = stream_context
        self.catalog = catalog or CatalogCache.from_url(
            settings.model_catalog_url, settings.model_catalog_ttl_seconds
        )
        self.enricher = UsageEnricher(self.catalog)
        self.document_loader = document_loader
        self.id_factory = id_factory

    # Chat turns

    async def post(self, payload: Any, session: Optional[Session]) -> AsyncIterator[str]:
        """
        Start an assistant turn for a chat request.

        Returns:
            SSE frames of the turn (resumable when a stream context is configured)

        Raises:
            ChatSDKError: Malformed body, missing session, rate limit, foreign
                chat, or an unexpected failure before streaming began
        """
        body = parse_chat_request(payload)
        user = require_user(session)

        try:
            await self._check_rate_limit(user)

            chat = await self.repository.get_chat_by_id(body.id)
            if chat is not None:
                if chat.user_id != user.id:
                    raise ChatSDKError("forbidden:chat")
            else:
                title = await self.provider.generate_title(body.message.text() or "New chat")
                chat = Chat(
                    id=body.id,
                    user_id=user.id,
                    title=title,
                    visibility=body.selected_visibility_type,
                )
                await self.repository.save_chat(chat)

            history = await self.repository.get_messages_by_chat_id(chat.id)
            await self.repository.save_messages([
                MessageRecord(
                    id=body.message.id,
                    chat_id=chat.id,
                    role="user",
                    parts=[part.model_dump(mode="json", by_alias=True) for part in body.message.parts],
                )
            ])

            stream_id = self.id_factory()
            await self.repository.create_stream_id(stream_id, chat.id)

        except ChatSDKError:
            raise
        except Exception as e:
            logger.error("Unhandled error in chat request", chat_id=body.id, error=e)
            raise ChatSDKError("offline:chat")

        logger.info("Starting assistant turn", chat_id=chat.id, stream_id=stream_id, user_id=user.id)

        def make_stream() -> AsyncIterator[str]:
            return to_sse(self._run_turn(chat.id, body, history, stream_id))

        return await self._deliver(stream_id, make_stream)

    async def _check_rate_limit(self, user: SessionUser) -> None:
        message_count = await self.repository.get_message_count_by_user_id(
            user.id, RATE_LIMIT_WINDOW_HOURS
        )
        entitlement = ENTITLEMENTS_BY_USER_TYPE[user.type.value]
        if message_count > entitlement["max_messages_per_day"]:
            logger.info("Rate limit reached", user_id=user.id, message_count=message_count)
            raise ChatSDKError("rate_limit:chat")

    async def _deliver(self, stream_id: str, make_stream: Callable[[], AsyncIterator[str]]) -> AsyncIterator[str]:
        if self.stream_context is None:
            return make_stream()
        return await self.stream_context.resumable_stream(stream_id, make_stream)

    async def _build_user_content(self, body: ChatRequestBody) -> List[Dict[str, Any]]:
        files = [part for part in body.message.parts if isinstance(part, FilePart)]
        documents = [part for part in files if not part.is_image]
        document_texts = await asyncio.gather(*(
            self.document_loader(str(part.url), part.media_type, part.name) for part in documents
        ))
        return build_user_content(
            body.message.text(),
            image_urls=[str(part.url) for part in files if part.is_image],
            documents=document_texts,
        )

    async def _open_turn(self, body: ChatRequestBody, history: List[MessageRecord]):
        user_content = await self._build_user_content(body)
        payload = build_responses_request(
            model=resolve_chat_model(body.selected_chat_model or self.settings.chat_model),
            input=build_turn_input(history, user_content),
            instructions=self.settings.system_prompt,
            prompt_id=self.settings.openai_prompt_id,
        )
        return await self.provider.open_stream(payload)

    async def _run_turn(
        self,
        chat_id: str,
        body: ChatRequestBody,
        history: List[MessageRecord],
        stream_id: str,
    ) -> AsyncIterator[ProtocolEvent]:
        orchestrator = StreamOrchestrator(
            opener=lambda: self._open_turn(body, history),
            enricher=self.enricher,
            request_id=stream_id,
        )
        try:
            async for event in orchestrator.events():
                yield event
        except Exception as e:
            logger.error("Assistant turn failed", request_id=stream_id, chat_id=chat_id, error=e)
        finally:
            await self._persist_turn(chat_id, orchestrator.session)

    async def _persist_turn(self, chat_id: str, session: StreamSession) -> None:
        """Save the assistant message (including partial text) and the turn's usage."""
        parts = [
            {"type": "reasoning", "text": block.accumulated_text}
            for block in session.reasoning.blocks if block.accumulated_text
        ] + [
            {"type": "text", "text": block.accumulated_text}
            for block in session.text.blocks if block.accumulated_text
        ]

        try:
            if parts:
                await self.repository.save_messages([
                    MessageRecord(id=self.id_factory(), chat_id=chat_id, role="assistant", parts=parts)
                ])
            if session.finished and session.usage is not None:
                await self.repository.update_chat_last_context(chat_id, session.usage)
        except Exception as e:
            logger.warning("Unable to persist assistant turn", chat_id=chat_id, error=e)

    # Provider passthrough

    async def proxy(self, payload: Any, session: Optional[Session]) -> Union[AsyncIterator[str], Dict[str, Any]]:
        """Route a passthrough request by mode: SSE frames for streams, a JSON body for generate."""
        if isinstance(payload, dict) and payload.get("mode") == "provider-generate":
            return await self.proxy_generate(payload, session)
        return await self.proxy_stream(payload, session)

    async def proxy_stream(self, payload: Any, session: Optional[Session]) -> AsyncIterator[str]:
        """Stream an arbitrary Responses API request through the orchestrator, without persistence."""
        proxy = self._parse_proxy(payload, "provider-stream")
        require_user(session)

        request = dict(proxy.request)
        if self.settings.openai_prompt_id and "prompt" not in request:
            request["prompt"] = {"id": self.settings.openai_prompt_id}
        request_id = self.id_factory()

        async def events() -> AsyncIterator[ProtocolEvent]:
            orchestrator = StreamOrchestrator(
                opener=lambda: self.provider.open_stream(request),
                enricher=self.enricher,
                request_id=request_id,
            )
            try:
                async for event in orchestrator.events():
                    yield event
            except Exception as e:
                logger.error("Provider stream proxy failed", request_id=request_id, error=e)

        return to_sse(events())

    async def proxy_generate(self, payload: Any, session: Optional[Session]) -> Dict[str, Any]:
        """Create a non-streaming response for an arbitrary Responses API request."""
        proxy = self._parse_proxy(payload, "provider-generate")
        require_user(session)
        try:
            with logger.track_turn("provider-generate", model=proxy.request.get("model")):
                response = await self.provider.generate(proxy.request)
        except Exception:
            raise ChatSDKError("offline:chat")
        if hasattr(response, "model_dump"):
            response = response.model_dump(mode="json")
        return {"response": response}

    @staticmethod
    def _parse_proxy(payload: Any, mode: str) -> ProviderProxyRequest:
        try:
            proxy = ProviderProxyRequest.model_validate(payload)
        except ValidationError:
            raise ChatSDKError("bad_request:api")
        if proxy.mode != mode:
            raise ChatSDKError("bad_request:api")
        return proxy

    # Resumption and deletion

    async def resume(self, chat_id: str, session: Optional[Session], skip: int = 0) -> Optional[AsyncIterator[str]]:
        """
        Reader for the most recent stream of a chat.

        Returns:
            Frame reader, or None when resumable streams are disabled or the
            stream is no longer buffered
        """
        user = require_user(session)
        chat = await self.repository.get_chat_by_id(chat_id)
        if chat is None:
            raise ChatSDKError("not_found:chat")
        if chat.visibility == "private" and chat.user_id != user.id:
            raise ChatSDKError("forbidden:chat")

        stream_ids = await self.repository.get_stream_ids_by_chat_id(chat_id)
        if not stream_ids:
            raise ChatSDKError("not_found:stream")
        if self.stream_context is None:
            return None
        return await self.stream_context.resume_existing_stream(stream_ids[-1], skip=skip)

    async def delete(self, chat_id: Optional[str], session: Optional[Session]) -> Chat:
        if not chat_id:
            raise ChatSDKError("bad_request:api")
        user = require_user(session)

        chat = await self.repository.get_chat_by_id(chat_id)
        if chat is None or chat.user_id != user.id:
            raise ChatSDKError("forbidden:chat")

        deleted = await self.repository.delete_chat_by_id(chat_id)
        logger.info("Deleted chat", chat_id=chat_id, user_id=user.id)
        return deleted
