from .adapter import OpenAIResponsesProvider, OpenAIResponseSubscription
from .parsers import extract_text_from_response
from .payloads import (
    build_responses_request,
    build_turn_input,
    build_user_content,
    history_to_input
)

__all__ = [
    "OpenAIResponsesProvider",
    "OpenAIResponseSubscription",
    "extract_text_from_response",
    "build_responses_request",
    "build_turn_input",
    "build_user_content",
    "history_to_input"
]
