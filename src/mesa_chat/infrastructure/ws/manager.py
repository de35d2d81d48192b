"""In-process WebSocket connection manager."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

from mesa_chat.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks one WebSocket per connection-id; implements the Transport port."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}

    async def connect(self, ws: WebSocket, connection_id: str) -> None:
        await ws.accept()
        self._connections[connection_id] = ws
        logger.debug("WS connected: %s (total=%d)", connection_id, len(self._connections))

    def disconnect(self, connection_id: str) -> None:
        if self._connections.pop(connection_id, None) is not None:
            logger.debug("WS disconnected: %s", connection_id)

    async def send(self, connection_id: str, event_type: str, data: dict[str, Any]) -> None:
        ws = self._connections.get(connection_id)
        if ws is None:
            return
        raw = WsOutbound(type=event_type, data=data).model_dump_json()
        try:
            await ws.send_text(raw)
        except Exception:
            logger.debug("Send to %s failed, dropping connection", connection_id, exc_info=True)
            self.disconnect(connection_id)

    async def broadcast(
        self,
        event_type: str,
        data: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> None:
        raw = WsOutbound(type=event_type, data=data).model_dump_json()
        dead: list[str] = []
        for connection_id, ws in list(self._connections.items()):
            if connection_id == exclude:
                continue
            try:
                await ws.send_text(raw)
            except Exception:
                dead.append(connection_id)
        for connection_id in dead:
            self.disconnect(connection_id)

    async def close(self, connection_id: str, reason: str = "") -> None:
        ws = self._connections.pop(connection_id, None)
        if ws is None:
            return
        try:
            await ws.close(code=4000, reason=reason)
        except Exception:
            logger.debug("Close of %s failed", connection_id, exc_info=True)

    def __len__(self) -> int:
        return len(self._connections)
