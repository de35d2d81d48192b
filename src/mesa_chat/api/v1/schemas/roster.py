from __future__ import annotations

from pydantic import BaseModel

from mesa_chat.domain.value_objects.enums import Role


class RosterEntryResponse(BaseModel):
    connection_id: str
    identity_id: str | None
    name: str
    role: Role
    avatar: str | None
    muted: bool

    model_config = {"from_attributes": True}


class RosterResponse(BaseModel):
    entries: list[RosterEntryResponse]
    global_muted: bool
