from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mesa_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class ParticipantIdentity:
    """A registered participant, backed by a credential record."""

    identity_id: str
    name: str
    avatar: str | None
    muted: bool = False

    @property
    def role(self) -> Role:
        return Role.PARTICIPANT


@dataclass(frozen=True, slots=True)
class ModeratorIdentity:
    """The moderator persona. Never persisted, never muted."""

    name: str
    avatar: str | None

    @property
    def identity_id(self) -> None:
        return None

    @property
    def role(self) -> Role:
        return Role.MODERATOR

    @property
    def muted(self) -> bool:
        return False


Identity = ParticipantIdentity | ModeratorIdentity


def public_identity(identity: Identity) -> dict[str, Any]:
    """Payload of the ``registered`` event."""
    return {
        "id": identity.identity_id,
        "name": identity.name,
        "role": identity.role.value,
        "avatar": identity.avatar,
        "muted": identity.muted,
    }
