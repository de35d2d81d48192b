from __future__ import annotations

from typing import Any, Protocol


class Transport(Protocol):
    """Outbound side of the per-connection event channel."""

    async def send(self, connection_id: str, event_type: str, data: dict[str, Any]) -> None: ...

    async def broadcast(
        self,
        event_type: str,
        data: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> None: ...

    async def close(self, connection_id: str, reason: str = "") -> None: ...
