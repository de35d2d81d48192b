"""Per-connection session state machine.

Anonymous -> Registering -> Active -> Closed, with Anonymous -> Resuming ->
Active as the reconnect path. The controller owns no transport: it receives
connection events and talks back through the Transport port.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable

from pydantic import ValidationError as PayloadError

from mesa_chat.application.dto.commands import (
    DeleteMessageCommand,
    MessageCommand,
    MuteUserCommand,
    RegisterCommand,
    ResumeCommand,
    SetAvatarCommand,
    SetGlobalMuteCommand,
    SetNameCommand,
)
from mesa_chat.application.exceptions import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from mesa_chat.application.policies.permissions import assert_moderator
from mesa_chat.application.ports.auth import PasswordHasher
from mesa_chat.application.ports.clock import Clock, SystemClock
from mesa_chat.application.ports.tokens import TokenRegistry
from mesa_chat.application.ports.transport import Transport
from mesa_chat.application.uow import UoWFactory
from mesa_chat.domain.entities.identity import (
    Identity,
    ModeratorIdentity,
    ParticipantIdentity,
    public_identity,
)
from mesa_chat.domain.entities.roster import RosterEntry, RosterPatch
from mesa_chat.domain.entities.session_token import TokenDescriptor
from mesa_chat.domain.value_objects.enums import ModeratorSessions, Role, SessionState
from mesa_chat.domain.value_objects.ids import MODERATOR_KEY
from mesa_chat.services import message_service, registration_service
from mesa_chat.services.moderation import ModerationState
from mesa_chat.services.presence import PresenceRoster
from mesa_chat.services.typing_indicator import TypingAggregator

logger = logging.getLogger(__name__)

REGISTER_FAILED = "Erro no registro."
KICKED_REASON = "Outro mestre entrou na sala."


@dataclass
class ConnectionContext:
    connection_id: str
    state: SessionState = SessionState.ANONYMOUS
    identity: Identity | None = None
    token: str | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED


Handler = Callable[[ConnectionContext, dict[str, Any]], Awaitable[None]]


class SessionController:
    def __init__(
        self,
        *,
        transport: Transport,
        roster: PresenceRoster,
        moderation: ModerationState,
        typing: TypingAggregator,
        tokens: TokenRegistry,
        hasher: PasswordHasher,
        uow_factory: UoWFactory,
        clock: Clock | None = None,
        admin_secret: str = "",
        moderator_name: str = "Mestre",
        moderator_sessions: ModeratorSessions = ModeratorSessions.PLURAL,
        history_limit: int = 500,
        message_max_length: int = 500,
        name_max_length: int = 20,
        password_min_length: int = 4,
    ) -> None:
        self._transport = transport
        self._roster = roster
        self._moderation = moderation
        self._typing = typing
        self._tokens = tokens
        self._hasher = hasher
        self._uow_factory = uow_factory
        self._clock = clock or SystemClock()
        self._admin_secret = admin_secret
        self._moderator_name = moderator_name
        self._moderator_sessions = ModeratorSessions(moderator_sessions)
        self._history_limit = history_limit
        self._message_max_length = message_max_length
        self._name_max_length = name_max_length
        self._password_min_length = password_min_length
        self._connections: dict[str, ConnectionContext] = {}
        self._handlers: dict[str, Handler] = {
            "register": self._on_register,
            "resume": self._on_resume,
            "message": self._on_message,
            "typing": self._on_typing,
            "stopTyping": self._on_stop_typing,
            "deleteMessage": self._on_delete_message,
            "clearAll": self._on_clear_all,
            "muteUser": self._on_mute_user,
            "setGlobalMute": self._on_set_global_mute,
            "setName": self._on_set_name,
            "setAvatar": self._on_set_avatar,
        }

    # -- connection lifecycle -------------------------------------------------

    async def on_connect(self, connection_id: str) -> None:
        self._connections[connection_id] = ConnectionContext(connection_id)
        logger.debug("Connection opened: %s", connection_id)
        try:
            async with self._uow_factory() as uow:
                history = await message_service.list_history(uow, self._history_limit)
        except TransientStoreError:
            logger.exception("Could not load history for %s", connection_id)
        else:
            await self._transport.send(
                connection_id, "history", {"messages": [m.to_payload() for m in history]},
            )
        await self._transport.send(
            connection_id, "moderationState", self._moderation.state_payload(),
        )

    async def on_disconnect(self, connection_id: str) -> None:
        ctx = self._connections.pop(connection_id, None)
        if ctx is None:
            return
        # Set synchronously so in-flight handlers see it before touching the roster.
        ctx.state = SessionState.CLOSED
        await self._roster.leave(connection_id)
        if ctx.identity is not None:
            await self._stop_typing(ctx.identity.name, exclude=connection_id)
        logger.debug("Connection closed: %s", connection_id)

    async def handle(self, connection_id: str, event_type: str, data: dict[str, Any]) -> None:
        ctx = self._connections.get(connection_id)
        if ctx is None or ctx.closed:
            return
        handler = self._handlers.get(event_type)
        if handler is None:
            await self._transport.send(
                connection_id, "error", {"code": "unknown_type", "type": event_type},
            )
            return
        async with ctx.lock:
            try:
                await handler(ctx, data)
            except PayloadError as exc:
                await self._transport.send(
                    connection_id,
                    "error",
                    {"code": "invalid_data", "type": event_type, "detail": str(exc)},
                )
            except ForbiddenError as exc:
                logger.debug("Ignored %s from %s: %s", event_type, connection_id, exc.detail)
            except NotFoundError as exc:
                logger.debug("%s from %s: %s", event_type, connection_id, exc.detail)
                await self._transport.send(
                    connection_id, "error", {"code": "not_found", "type": event_type},
                )
            except TransientStoreError:
                logger.exception("Store failure handling %s for %s", event_type, connection_id)
                await self._transport.send(
                    connection_id, "error", {"code": "store_unavailable", "type": event_type},
                )

    async def expire_typing(self) -> None:
        """Announce typing markers that lapsed; driven by a periodic sweeper."""
        for name in self._typing.expire():
            await self._transport.broadcast("userStopTyping", {"name": name})

    def state_of(self, connection_id: str) -> SessionState:
        ctx = self._connections.get(connection_id)
        return ctx.state if ctx is not None else SessionState.CLOSED

    def identity_of(self, connection_id: str) -> Identity | None:
        ctx = self._connections.get(connection_id)
        return ctx.identity if ctx is not None else None

    def active_count(self) -> int:
        return sum(1 for ctx in self._connections.values() if ctx.state is SessionState.ACTIVE)

    # -- entry paths ------------------------------------------------------------

    async def _on_register(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        if ctx.state is not SessionState.ANONYMOUS:
            logger.debug("register ignored on %s in state %s", ctx.connection_id, ctx.state)
            return
        cmd = RegisterCommand.model_validate(data)
        ctx.state = SessionState.REGISTERING
        try:
            identity = await self._authenticate(cmd)
            token = await self._tokens.issue(self._descriptor_for(identity))
            await self._activate(ctx, identity, token)
        except (ValidationError, AuthError) as exc:
            await self._transport.send(ctx.connection_id, "registerError", {"reason": exc.detail})
        except TransientStoreError:
            logger.exception("Registration failed for %s", ctx.connection_id)
            await self._transport.send(ctx.connection_id, "registerError", {"reason": REGISTER_FAILED})
        finally:
            self._settle(ctx, SessionState.REGISTERING)

    async def _on_resume(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        if ctx.state is not SessionState.ANONYMOUS:
            logger.debug("resume ignored on %s in state %s", ctx.connection_id, ctx.state)
            return
        cmd = ResumeCommand.model_validate(data)
        ctx.state = SessionState.RESUMING
        try:
            if not cmd.token:
                raise NotFoundError("Empty session token")
            descriptor = await self._tokens.resolve(cmd.token)
            identity = await self._identity_for(descriptor)
            await self._activate(ctx, identity, cmd.token)
        except NotFoundError as exc:
            logger.debug("Resume failed for %s: %s", ctx.connection_id, exc.detail)
            await self._transport.send(ctx.connection_id, "resumeFailed", {})
        finally:
            self._settle(ctx, SessionState.RESUMING)

    async def _authenticate(self, cmd: RegisterCommand) -> Identity:
        match cmd.role:
            case Role.PARTICIPANT:
                async with self._uow_factory() as uow:
                    return await registration_service.register_participant(
                        cmd.name,
                        cmd.avatar,
                        cmd.password,
                        uow,
                        self._hasher,
                        name_max_length=self._name_max_length,
                        password_min_length=self._password_min_length,
                    )
            case Role.MODERATOR:
                return registration_service.authenticate_moderator(
                    cmd.password, self._admin_secret, cmd.avatar, name=self._moderator_name,
                )

    async def _identity_for(self, descriptor: TokenDescriptor) -> Identity:
        match descriptor:
            case TokenDescriptor(role=Role.MODERATOR, name=name, avatar=avatar):
                return ModeratorIdentity(name=name or self._moderator_name, avatar=avatar)
            case TokenDescriptor(role=Role.PARTICIPANT, identity_id=str(identity_id)):
                async with self._uow_factory() as uow:
                    credential = await uow.credentials.get_by_id(identity_id)
                identity = registration_service.identity_from_credential(credential)
                if identity is None:
                    raise NotFoundError(f"Identity {identity_id} not found")
                return identity
        raise NotFoundError("Malformed session token")

    def _descriptor_for(self, identity: Identity) -> TokenDescriptor:
        match identity:
            case ModeratorIdentity(name=name, avatar=avatar):
                return TokenDescriptor(role=Role.MODERATOR, name=name, avatar=avatar)
            case ParticipantIdentity(identity_id=identity_id):
                return TokenDescriptor(role=Role.PARTICIPANT, identity_id=identity_id)

    async def _activate(self, ctx: ConnectionContext, identity: Identity, token: str) -> None:
        exclusive = (
            isinstance(identity, ModeratorIdentity)
            and self._moderator_sessions is ModeratorSessions.SINGLE
        )

        def _promote() -> bool:
            # Runs under the roster lock, atomically with the insert.
            if ctx.closed:
                return False
            ctx.identity = identity
            ctx.token = token
            ctx.state = SessionState.ACTIVE
            if exclusive:
                for cid in self._roster.moderator_connections():
                    other = self._connections.get(cid)
                    if other is not None and other is not ctx:
                        other.state = SessionState.CLOSED
            return True

        entry = RosterEntry.for_identity(ctx.connection_id, identity)
        displaced: list[RosterEntry] = []
        if exclusive:
            result = await self._roster.join_exclusive(ctx.connection_id, entry, guard=_promote)
            joined = result is not None
            displaced = result or []
        else:
            joined = await self._roster.join(ctx.connection_id, entry, guard=_promote)
        if not joined:
            logger.debug("Discarding activation of closed connection %s", ctx.connection_id)
            return

        for old in displaced:
            await self._evict(old.connection_id)
        if ctx.closed:
            logger.debug("Activation of %s superseded by a newer moderator session", ctx.connection_id)
            return
        await self._transport.send(ctx.connection_id, "registered", public_identity(identity))
        await self._transport.send(ctx.connection_id, "authToken", {"token": token})
        logger.info("%s %s active on %s", identity.role.value, identity.name, ctx.connection_id)

    async def _evict(self, connection_id: str) -> None:
        logger.info("Evicting moderator connection %s", connection_id)
        await self._transport.send(connection_id, "kicked", {"reason": KICKED_REASON})
        await self._transport.close(connection_id, KICKED_REASON)
        await self.on_disconnect(connection_id)

    def _settle(self, ctx: ConnectionContext, pending: SessionState) -> None:
        if ctx.state is pending:
            ctx.state = SessionState.ANONYMOUS

    # -- active actions --------------------------------------------------------

    def _active_identity(self, ctx: ConnectionContext) -> Identity | None:
        if ctx.state is not SessionState.ACTIVE:
            return None
        return ctx.identity

    async def _on_message(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        identity = self._active_identity(ctx)
        if identity is None:
            return
        cmd = MessageCommand.model_validate(data)
        if not cmd.text.strip():
            return
        async with self._uow_factory() as uow:
            reason = await self._moderation.send_block_reason(identity, uow)
            if reason is not None:
                await self._transport.send(ctx.connection_id, "mutedWarning", {"reason": reason})
                return
            msg = await message_service.post_message(
                identity, cmd.text, uow, self._clock, max_length=self._message_max_length,
            )
        await self._stop_typing(identity.name, exclude=ctx.connection_id)
        await self._transport.broadcast("message", msg.to_payload())

    async def _on_typing(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        identity = self._active_identity(ctx)
        if identity is None:
            return
        if self._typing.mark_typing(identity.name) is not None:
            await self._transport.broadcast(
                "userTyping", {"name": identity.name}, exclude=ctx.connection_id,
            )

    async def _on_stop_typing(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        identity = self._active_identity(ctx)
        if identity is None:
            return
        await self._stop_typing(identity.name, exclude=ctx.connection_id)

    async def _stop_typing(self, name: str, *, exclude: str | None = None) -> None:
        if self._typing.clear_typing(name) is not None:
            await self._transport.broadcast("userStopTyping", {"name": name}, exclude=exclude)

    async def _on_delete_message(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        identity = self._active_identity(ctx)
        assert_moderator(identity)
        cmd = DeleteMessageCommand.model_validate(data)
        async with self._uow_factory() as uow:
            deleted = await message_service.delete_message(identity, cmd.id, uow)
        if deleted:
            await self._transport.broadcast("messageDeleted", {"id": cmd.id})

    async def _on_clear_all(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        identity = self._active_identity(ctx)
        assert_moderator(identity)
        async with self._uow_factory() as uow:
            count = await message_service.clear_all(identity, uow)
        logger.info("History cleared (%d messages) by %s", count, ctx.connection_id)
        await self._transport.broadcast("cleared", {})

    async def _on_mute_user(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        identity = self._active_identity(ctx)
        assert_moderator(identity)
        cmd = MuteUserCommand.model_validate(data)
        async with self._uow_factory() as uow:
            await self._moderation.set_user_mute(identity, cmd.identity_id, cmd.mute, uow)

    async def _on_set_global_mute(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        identity = self._active_identity(ctx)
        assert_moderator(identity)
        cmd = SetGlobalMuteCommand.model_validate(data)
        await self._moderation.set_global_mute(identity, cmd.value)

    async def _on_set_name(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        moderator = assert_moderator(self._active_identity(ctx))
        cmd = SetNameCommand.model_validate(data)
        name = cmd.name.strip()[: self._name_max_length] or self._moderator_name
        if name != moderator.name:
            await self._stop_typing(moderator.name)
        await self._update_moderator(patch_name=name)

    async def _on_set_avatar(self, ctx: ConnectionContext, data: dict[str, Any]) -> None:
        assert_moderator(self._active_identity(ctx))
        cmd = SetAvatarCommand.model_validate(data)
        await self._update_moderator(patch_avatar=cmd.avatar)

    async def _update_moderator(
        self,
        *,
        patch_name: str | None = None,
        patch_avatar: str | None = None,
    ) -> None:
        """Apply a rename/re-avatar to every moderator token and live session."""
        await self._tokens.update(MODERATOR_KEY, patch_name=patch_name, patch_avatar=patch_avatar)
        affected = await self._roster.mutate(
            MODERATOR_KEY, RosterPatch(name=patch_name, avatar=patch_avatar),
        )
        for cid in affected:
            other = self._connections.get(cid)
            if other is None or not isinstance(other.identity, ModeratorIdentity):
                continue
            other.identity = replace(
                other.identity,
                name=patch_name if patch_name is not None else other.identity.name,
                avatar=patch_avatar if patch_avatar is not None else other.identity.avatar,
            )
            if patch_name is not None:
                await self._transport.send(cid, "registered", public_identity(other.identity))
