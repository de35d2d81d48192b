"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # register | resume | message | typing | ... | ping
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # registered | roster | message | moderationState | error | pong | ...
    data: dict[str, Any] = {}
