"""Request-level errors for the chat surface.

Codes have the form ``"<type>:<surface>"``, e.g. ``"rate_limit:chat"``.
"""

from typing import Any, Dict, Optional

STATUS_BY_TYPE = {
    "bad_request": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "rate_limit": 429,
    "offline": 503,
}

MESSAGES_BY_CODE = {
    "bad_request:api": "The request couldn't be processed. Please check your input and try again.",
    "unauthorized:chat": "You need to sign in to view this chat. Please sign in and try again.",
    "forbidden:chat": "This chat belongs to another user. Please check the chat ID and try again.",
    "not_found:chat": "The requested chat was not found. Please check the chat ID and try again.",
    "rate_limit:chat": "You have exceeded your maximum number of messages for the day. Please try again later.",
    "offline:chat": "We're having trouble sending your message. Please check your internet connection and try again.",
    "not_found:stream": "The requested stream was not found.",
}

GENERIC_MESSAGE = "Something went wrong. Please try again later."


class ChatSDKError(Exception):
    """An error that is reported to the client as a JSON response."""

    def __init__(self, code: str, cause: Optional[str] = None):
        error_type, _, surface = code.partition(":")
        if error_type not in STATUS_BY_TYPE:
            raise ValueError(f"Unknown error type: {error_type}")
        self.code = code
        self.type = error_type
        self.surface = surface
        self.cause = cause
        self.message = MESSAGES_BY_CODE.get(code, GENERIC_MESSAGE)
        self.status_code = STATUS_BY_TYPE[error_type]
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.cause:
            body["cause"] = self.cause
        return body
