"""Chat route: request validation, persistence and turn delivery."""

from .documents import extract_text_from_document
from .errors import ChatSDKError
from .repository import ChatRepository, InMemoryChatRepository
from .service import ChatService, is_provider_proxy_request, parse_chat_request

__all__ = [
    "extract_text_from_document",
    "ChatSDKError",
    "ChatRepository",
    "InMemoryChatRepository",
    "ChatService",
    "is_provider_proxy_request",
    "parse_chat_request"
]
