from .chat import (
    Chat,
    ChatRequestBody,
    FilePart,
    MessageRecord,
    ProviderProxyRequest,
    Session,
    SessionUser,
    StreamRecord,
    TextPart,
    UserMessage,
    UserType
)
from .events import (
    BlockDeltaEvent,
    BlockEndEvent,
    BlockStartEvent,
    ErrorEvent,
    FinishEvent,
    ProtocolEvent,
    StartEvent,
    StreamEvent,
    UsageDataEvent
)
from .usage import UsageSummary

__all__ = [
    "Chat",
    "ChatRequestBody",
    "FilePart",
    "MessageRecord",
    "ProviderProxyRequest",
    "Session",
    "SessionUser",
    "StreamRecord",
    "TextPart",
    "UserMessage",
    "UserType",
    "BlockDeltaEvent",
    "BlockEndEvent",
    "BlockStartEvent",
    "ErrorEvent",
    "FinishEvent",
    "ProtocolEvent",
    "StartEvent",
    "StreamEvent",
    "UsageDataEvent",
    "UsageSummary"
]
