from __future__ import annotations

from dataclasses import dataclass

from mesa_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Credential:
    id: str
    name: str
    password_hash: str
    role: Role
    avatar: str | None
    muted: bool
