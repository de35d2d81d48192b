"""Payloads of the inbound connection events."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from mesa_chat.domain.value_objects.enums import Role


class RegisterCommand(BaseModel):
    role: Role
    name: str | None = None
    avatar: str | None = None
    password: str | None = None


class ResumeCommand(BaseModel):
    token: str = ""


class MessageCommand(BaseModel):
    text: str = ""


class DeleteMessageCommand(BaseModel):
    id: str


class MuteUserCommand(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    identity_id: str = Field(alias="identityId")
    mute: bool


class SetGlobalMuteCommand(BaseModel):
    value: bool


class SetNameCommand(BaseModel):
    name: str = ""


class SetAvatarCommand(BaseModel):
    avatar: str
