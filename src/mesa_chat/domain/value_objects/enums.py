from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    PARTICIPANT = "participant"
    MODERATOR = "moderator"


class SessionState(StrEnum):
    ANONYMOUS = "anonymous"
    REGISTERING = "registering"
    RESUMING = "resuming"
    ACTIVE = "active"
    CLOSED = "closed"


class ModeratorSessions(StrEnum):
    PLURAL = "plural"
    SINGLE = "single"
