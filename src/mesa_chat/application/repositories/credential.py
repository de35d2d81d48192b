from __future__ import annotations

from typing import Protocol

from mesa_chat.domain.entities.credential import Credential


class CredentialReader(Protocol):
    async def get_by_id(self, identity_id: str) -> Credential | None: ...

    async def get_by_name(self, name: str) -> Credential | None: ...


class CredentialWriter(Protocol):
    async def create(self, credential: Credential) -> Credential: ...

    async def set_muted(self, identity_id: str, muted: bool) -> bool:
        """Return False when no such credential exists."""
        ...
