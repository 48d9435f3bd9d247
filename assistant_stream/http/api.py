"""FastAPI HTTP endpoints for the assistant stream service.

Mount ``router`` into an existing application, or call ``create_app`` for a
standalone one. The chat service and session provider are read from
``app.state``.
"""

import json
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..chat.errors import ChatSDKError
from ..chat.service import ChatService, is_provider_proxy_request
from ..config.constants import SSE_HEADERS
from ..models.chat import Session, SessionUser, UserType
from ..observability.logging import StreamLogger

logger = StreamLogger("http")

SessionProvider = Callable[[Request], Optional[Session]]


class HeaderSessionProvider:
    """Resolves the session from ``X-User-Id`` / ``X-User-Type`` request headers."""

    def __init__(self, user_header: str = "x-user-id", type_header: str = "x-user-type"):
        self.user_header = user_header
        self.type_header = type_header

    def __call__(self, request: Request) -> Optional[Session]:
        user_id = request.headers.get(self.user_header)
        if not user_id:
            return None
        try:
            user_type = UserType(request.headers.get(self.type_header, UserType.REGULAR.value))
        except ValueError:
            user_type = UserType.REGULAR
        return Session(user=SessionUser(id=user_id, type=user_type))


# Create router instance
router = APIRouter()


def _service(request: Request) -> ChatService:
    return request.app.state.chat_service


def _session(request: Request) -> Optional[Session]:
    return request.app.state.session_provider(request)


def _event_stream(frames) -> StreamingResponse:
    return StreamingResponse(frames, media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/api/chat")
async def post_chat(request: Request):
    """Run one assistant turn, or pass a raw Responses request through."""
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        raise ChatSDKError("bad_request:api", cause="Request body is not valid JSON")

    service = _service(request)
    session = _session(request)

    if is_provider_proxy_request(payload):
        result = await service.proxy(payload, session)
        if isinstance(result, dict):
            return JSONResponse(result)
        return _event_stream(result)

    return _event_stream(await service.post(payload, session))


@router.get("/api/chat/{chat_id}/stream")
async def resume_chat_stream(chat_id: str, request: Request, skip: int = 0):
    """Reattach to the most recent stream of a chat."""
    frames = await _service(request).resume(chat_id, _session(request), skip=skip)
    if frames is None:
        return Response(status_code=204)
    return _event_stream(frames)


@router.delete("/api/chat")
async def delete_chat(request: Request, id: Optional[str] = None):
    chat = await _service(request).delete(id, _session(request))
    return JSONResponse(chat.model_dump(mode="json"))


async def chat_error_handler(request: Request, exc: ChatSDKError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Chat request failed", code=exc.code, cause=exc.cause)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def create_app(service: ChatService, session_provider: Optional[SessionProvider] = None) -> FastAPI:
    """Build a FastAPI application serving the chat endpoints."""
    app = FastAPI(title="Assistant Stream")
    app.state.chat_service = service
    app.state.session_provider = session_provider or HeaderSessionProvider()
    app.add_exception_handler(ChatSDKError, chat_error_handler)
    app.include_router(router)
    return app
