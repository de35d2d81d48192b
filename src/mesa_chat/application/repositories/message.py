from __future__ import annotations

from typing import Protocol

from mesa_chat.domain.entities.message import ChatMessage


class MessageReader(Protocol):
    async def list_recent(self, limit: int = 500) -> list[ChatMessage]:
        """Most recent ``limit`` messages, oldest first."""
        ...


class MessageWriter(Protocol):
    async def append(self, message: ChatMessage) -> ChatMessage: ...

    async def delete(self, message_id: str) -> bool: ...

    async def delete_all(self) -> int: ...
