from __future__ import annotations

from mesa_chat.application.exceptions import ForbiddenError
from mesa_chat.domain.entities.identity import (
    Identity,
    ModeratorIdentity,
    ParticipantIdentity,
)


def assert_moderator(identity: Identity | None) -> ModeratorIdentity:
    """Raise unless the caller is bound to the moderator persona."""
    match identity:
        case ModeratorIdentity():
            return identity
        case ParticipantIdentity():
            raise ForbiddenError("Moderator access required")
        case None:
            raise ForbiddenError("Not registered")
