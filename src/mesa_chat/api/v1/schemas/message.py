from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class MessageResponse(BaseModel):
    id: str
    name: str
    text: str
    avatar: str | None
    role: str
    author_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
