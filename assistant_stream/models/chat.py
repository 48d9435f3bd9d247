from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

from .usage import UsageSummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserType(str, Enum):
    """Account tiers with distinct entitlements."""
    GUEST = "guest"
    REGULAR = "regular"


class SessionUser(BaseModel):
    id: str
    type: UserType = UserType.REGULAR


class Session(BaseModel):
    """Authenticated session as resolved by the session provider."""
    user: Optional[SessionUser] = None


class TextPart(_CamelModel):
    type: Literal["text"]
    text: str = Field(..., min_length=1, max_length=2000)


class FilePart(_CamelModel):
    type: Literal["file"]
    media_type: str
    name: str = Field(..., min_length=1, max_length=100)
    url: HttpUrl

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")


MessagePart = Annotated[Union[TextPart, FilePart], Field(discriminator="type")]


class UserMessage(_CamelModel):
    id: str
    role: Literal["user"]
    parts: List[MessagePart] = Field(..., min_length=1)

    def text(self) -> str:
        return "\n".join(part.text for part in self.parts if isinstance(part, TextPart))


class ChatRequestBody(_CamelModel):
    """Body of a chat turn request."""
    id: str
    message: UserMessage
    selected_chat_model: Optional[str] = None
    selected_visibility_type: Literal["public", "private"] = "private"


class ProviderProxyRequest(BaseModel):
    """Raw Responses API passthrough request."""
    mode: Literal["provider-stream", "provider-generate"]
    request: Dict[str, Any]


# Persistence records

class Chat(BaseModel):
    id: str
    user_id: str
    title: str
    visibility: Literal["public", "private"] = "private"
    created_at: datetime = Field(default_factory=_utcnow)
    last_context: Optional[UsageSummary] = None


class MessageRecord(BaseModel):
    id: str
    chat_id: str
    role: Literal["user", "assistant", "system"]
    parts: List[Dict[str, Any]]
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    def text(self) -> str:
        return "\n".join(
            part.get("text", "") for part in self.parts
            if part.get("type") == "text" and part.get("text")
        )


class StreamRecord(BaseModel):
    id: str
    chat_id: str
    created_at: datetime = Field(default_factory=_utcnow)
