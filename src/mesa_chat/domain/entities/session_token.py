from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from mesa_chat.domain.value_objects.enums import Role
from mesa_chat.domain.value_objects.ids import MODERATOR_KEY


@dataclass(frozen=True, slots=True)
class TokenDescriptor:
    """What a resumption token resolves to.

    Participants carry only their identity-id; the live name/avatar are
    re-read from the credential store on resume. The moderator has no
    credential record, so name and avatar are denormalized here.
    """

    role: Role
    identity_id: str | None = None
    name: str | None = None
    avatar: str | None = None

    def __post_init__(self) -> None:
        if self.role == Role.PARTICIPANT and not self.identity_id:
            raise ValueError("Participant token without identity-id")

    @property
    def index_key(self) -> str:
        if self.role == Role.MODERATOR:
            return MODERATOR_KEY
        return str(self.identity_id)

    def with_patch(self, name: str | None = None, avatar: str | None = None) -> TokenDescriptor:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if avatar is not None:
            changes["avatar"] = avatar
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "identity_id": self.identity_id,
            "name": self.name,
            "avatar": self.avatar,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenDescriptor:
        return cls(
            role=Role(data["role"]),
            identity_id=data.get("identity_id"),
            name=data.get("name"),
            avatar=data.get("avatar"),
        )


@dataclass(frozen=True, slots=True)
class TokenRecord:
    token: str
    descriptor: TokenDescriptor
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
