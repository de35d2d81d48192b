from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class ChatMessage:
    id: str
    name: str
    text: str
    avatar: str | None
    role: str
    author_id: str | None
    created_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "text": self.text,
            "avatar": self.avatar,
            "role": self.role,
            "author_id": self.author_id,
            "created_at": self.created_at.isoformat(),
        }
