from __future__ import annotations

from dataclasses import dataclass

from mesa_chat.application.ports.auth import PasswordHasher
from mesa_chat.application.ports.clock import Clock, SystemClock
from mesa_chat.application.ports.tokens import TokenRegistry
from mesa_chat.application.ports.transport import Transport
from mesa_chat.application.uow import UoWFactory
from mesa_chat.config import Settings
from mesa_chat.domain.value_objects.enums import ModeratorSessions
from mesa_chat.services.moderation import ModerationState
from mesa_chat.services.presence import PresenceRoster
from mesa_chat.services.session_controller import SessionController
from mesa_chat.services.typing_indicator import TypingAggregator


@dataclass(frozen=True, slots=True)
class ChatEngine:
    """The process-wide shared state plus the controller wired over it."""

    roster: PresenceRoster
    moderation: ModerationState
    typing: TypingAggregator
    tokens: TokenRegistry
    controller: SessionController


def build_engine(
    settings: Settings,
    *,
    transport: Transport,
    tokens: TokenRegistry,
    hasher: PasswordHasher,
    uow_factory: UoWFactory,
    clock: Clock | None = None,
) -> ChatEngine:
    clock = clock or SystemClock()
    roster = PresenceRoster(transport)
    moderation = ModerationState(roster, transport)
    typing = TypingAggregator(settings.TYPING_TTL_SECONDS, clock=clock)
    controller = SessionController(
        transport=transport,
        roster=roster,
        moderation=moderation,
        typing=typing,
        tokens=tokens,
        hasher=hasher,
        uow_factory=uow_factory,
        clock=clock,
        admin_secret=settings.ADMIN_SECRET,
        moderator_name=settings.MODERATOR_NAME,
        moderator_sessions=ModeratorSessions(settings.MODERATOR_SESSIONS),
        history_limit=settings.HISTORY_LIMIT,
        message_max_length=settings.MESSAGE_MAX_LENGTH,
        name_max_length=settings.NAME_MAX_LENGTH,
        password_min_length=settings.PASSWORD_MIN_LENGTH,
    )
    return ChatEngine(
        roster=roster,
        moderation=moderation,
        typing=typing,
        tokens=tokens,
        controller=controller,
    )
