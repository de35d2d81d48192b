from __future__ import annotations

import asyncio
import logging
from typing import Any

from mesa_chat.application.exceptions import NotFoundError
from mesa_chat.application.policies.permissions import assert_moderator
from mesa_chat.application.ports.transport import Transport
from mesa_chat.application.uow import UnitOfWork
from mesa_chat.domain.entities.identity import (
    Identity,
    ModeratorIdentity,
    ParticipantIdentity,
)
from mesa_chat.domain.entities.roster import RosterPatch
from mesa_chat.services.presence import PresenceRoster

logger = logging.getLogger(__name__)

GLOBAL_MUTE_REASON = "O chat está silenciado pelo mestre."
USER_MUTE_REASON = "Você está silenciado pelo mestre."


class ModerationState:
    """Global mute flag plus per-user mute propagation.

    The per-user flag is authoritative in the credential store; the roster
    copy is for display only.
    """

    def __init__(self, roster: PresenceRoster, transport: Transport) -> None:
        self._roster = roster
        self._transport = transport
        self._lock = asyncio.Lock()
        self._global_muted = False

    @property
    def global_muted(self) -> bool:
        return self._global_muted

    def state_payload(self) -> dict[str, Any]:
        return {"globalMuted": self._global_muted}

    async def set_global_mute(self, actor: Identity | None, value: bool) -> None:
        moderator = assert_moderator(actor)
        async with self._lock:
            self._global_muted = bool(value)
            logger.info("Global mute set to %s by %s", self._global_muted, moderator.name)
            await self._transport.broadcast("moderationState", self.state_payload())

    async def set_user_mute(
        self,
        actor: Identity | None,
        identity_id: str,
        mute: bool,
        uow: UnitOfWork,
    ) -> list[str]:
        """Persist, then mirror into the roster and notify the user's connections."""
        moderator = assert_moderator(actor)
        mute = bool(mute)
        found = await uow.credentials_w.set_muted(identity_id, mute)
        if not found:
            raise NotFoundError(f"Identity {identity_id} not found")
        await uow.commit()
        logger.info("User %s mute=%s by %s", identity_id, mute, moderator.name)

        connection_ids = await self._roster.mutate(identity_id, RosterPatch(muted=mute))
        for cid in connection_ids:
            await self._transport.send(cid, "userMuted", {"mute": mute})
        return connection_ids

    async def send_block_reason(self, identity: Identity, uow: UnitOfWork) -> str | None:
        """Why ``identity`` may not send right now, or None when it may."""
        match identity:
            case ModeratorIdentity():
                return None
            case ParticipantIdentity(identity_id=identity_id):
                if self._global_muted:
                    return GLOBAL_MUTE_REASON
                credential = await uow.credentials.get_by_id(identity_id)
                if credential is not None and credential.muted:
                    return USER_MUTE_REASON
                return None

    async def is_send_allowed(self, identity: Identity, uow: UnitOfWork) -> bool:
        return await self.send_block_reason(identity, uow) is None
