"""
Persistence interface for chats, messages and stream ids.

The relational store is an external collaborator; ChatRepository is the
seam it plugs into. InMemoryChatRepository backs local runs and tests.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from ..models.chat import Chat, MessageRecord, StreamRecord
from ..models.usage import UsageSummary


class ChatRepository(ABC):
    """Typed queries used by the chat service."""

    @abstractmethod
    async def save_chat(self, chat: Chat) -> None:
        pass

    @abstractmethod
    async def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        pass

    @abstractmethod
    async def delete_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        """Delete a chat with its messages and streams; returns the deleted chat."""

    @abstractmethod
    async def save_messages(self, messages: List[MessageRecord]) -> None:
        pass

    @abstractmethod
    async def get_messages_by_chat_id(self, chat_id: str) -> List[MessageRecord]:
        """Messages of a chat, oldest first."""

    @abstractmethod
    async def get_message_count_by_user_id(self, user_id: str, difference_in_hours: int) -> int:
        """Number of user messages sent by ``user_id`` within the last ``difference_in_hours``."""

    @abstractmethod
    async def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        pass

    @abstractmethod
    async def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        """Stream ids of a chat, oldest first."""

    @abstractmethod
    async def update_chat_last_context(self, chat_id: str, context: UsageSummary) -> None:
        pass


class InMemoryChatRepository(ChatRepository):
    """Dictionary-backed repository."""

    def __init__(self):
        self._chats: Dict[str, Chat] = {}
        self._messages: Dict[str, MessageRecord] = {}
        self._streams: List[StreamRecord] = []
        self._lock = asyncio.Lock()

    async def save_chat(self, chat: Chat) -> None:
        async with self._lock:
            self._chats[chat.id] = chat

    async def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        return self._chats.get(chat_id)

    async def delete_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        async with self._lock:
            chat = self._chats.pop(chat_id, None)
            self._messages = {
                message_id: message for message_id, message in self._messages.items()
                if message.chat_id != chat_id
            }
            self._streams = [stream for stream in self._streams if stream.chat_id != chat_id]
            return chat

    async def save_messages(self, messages: List[MessageRecord]) -> None:
        async with self._lock:
            for message in messages:
                self._messages[message.id] = message

    async def get_messages_by_chat_id(self, chat_id: str) -> List[MessageRecord]:
        messages = [message for message in self._messages.values() if message.chat_id == chat_id]
        return sorted(messages, key=lambda message: message.created_at)

    async def get_message_count_by_user_id(self, user_id: str, difference_in_hours: int) -> int:
        since = datetime.now(timezone.utc) - timedelta(hours=difference_in_hours)
        chat_ids = {chat.id for chat in self._chats.values() if chat.user_id == user_id}
        return sum(
            1 for message in self._messages.values()
            if message.chat_id in chat_ids and message.role == "user" and message.created_at >= since
        )

    async def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        async with self._lock:
            self._streams.append(StreamRecord(id=stream_id, chat_id=chat_id))

    async def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        return [stream.id for stream in self._streams if stream.chat_id == chat_id]

    async def update_chat_last_context(self, chat_id: str, context: UsageSummary) -> None:
        async with self._lock:
            chat = self._chats.get(chat_id)
            if chat is not None:
                self._chats[chat_id] = chat.model_copy(update={"last_context": context})
