from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from mesa_chat.domain.entities.identity import Identity
from mesa_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class RosterEntry:
    connection_id: str
    identity_id: str | None
    name: str
    role: Role
    avatar: str | None
    muted: bool

    @classmethod
    def for_identity(cls, connection_id: str, identity: Identity) -> RosterEntry:
        return cls(
            connection_id=connection_id,
            identity_id=identity.identity_id,
            name=identity.name,
            role=identity.role,
            avatar=identity.avatar,
            muted=identity.muted,
        )

    def patched(self, patch: RosterPatch) -> RosterEntry:
        changes: dict[str, Any] = {}
        if patch.name is not None:
            changes["name"] = patch.name
        if patch.avatar is not None:
            changes["avatar"] = patch.avatar
        if patch.muted is not None:
            changes["muted"] = patch.muted
        return replace(self, **changes)

    def to_payload(self) -> dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "identity_id": self.identity_id,
            "name": self.name,
            "role": self.role.value,
            "avatar": self.avatar,
            "muted": self.muted,
        }


@dataclass(frozen=True, slots=True)
class RosterPatch:
    """Fields left as ``None`` are not touched."""

    name: str | None = None
    avatar: str | None = None
    muted: bool | None = None
