"""Live roster of registered connections."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from mesa_chat.application.ports.transport import Transport
from mesa_chat.domain.entities.roster import RosterEntry, RosterPatch
from mesa_chat.domain.value_objects.enums import Role
from mesa_chat.domain.value_objects.ids import MODERATOR_KEY

logger = logging.getLogger(__name__)


def roster_key(entry: RosterEntry) -> str:
    if entry.role == Role.MODERATOR:
        return MODERATOR_KEY
    if entry.identity_id is None:
        raise ValueError(f"Participant entry without identity-id on {entry.connection_id}")
    return entry.identity_id


class PresenceRoster:
    """Single source of truth for who is online.

    Every visible change broadcasts the whole roster. Snapshots carry a
    version number so an older snapshot is never sent after a newer one,
    even when two mutations race to the transport.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._lock = asyncio.Lock()
        self._broadcast_lock = asyncio.Lock()
        self._entries: dict[str, RosterEntry] = {}
        self._by_identity: dict[str, set[str]] = {}
        self._version = 0
        self._sent_version = 0

    async def join(
        self,
        connection_id: str,
        entry: RosterEntry,
        *,
        guard: Callable[[], bool] | None = None,
    ) -> bool:
        """Insert or replace the entry for ``connection_id``.

        ``guard`` runs under the roster lock; when it returns False nothing
        is inserted (the connection closed while the caller was busy).
        """
        async with self._lock:
            if guard is not None and not guard():
                return False
            self._insert(connection_id, entry)
            version, payload = self._bump()
        await self._publish(version, payload)
        return True

    async def join_exclusive(
        self,
        connection_id: str,
        entry: RosterEntry,
        *,
        guard: Callable[[], bool] | None = None,
    ) -> list[RosterEntry] | None:
        """Like ``join``, but also drops every other entry under the same key.

        Guard, removal and insert happen in one locked step, so of several
        overlapping exclusive joins exactly the last one stays. Returns the
        displaced entries, or None when ``guard`` refused the insert.
        """
        async with self._lock:
            if guard is not None and not guard():
                return None
            displaced = [
                self._entries[cid]
                for cid in self.connections_of(roster_key(entry))
                if cid != connection_id
            ]
            for old in displaced:
                del self._entries[old.connection_id]
                self._unindex(old)
            self._insert(connection_id, entry)
            version, payload = self._bump()
        await self._publish(version, payload)
        return displaced

    async def leave(self, connection_id: str) -> RosterEntry | None:
        async with self._lock:
            entry = self._entries.pop(connection_id, None)
            if entry is None:
                return None
            self._unindex(entry)
            version, payload = self._bump()
        await self._publish(version, payload)
        return entry

    async def mutate(self, key: str, patch: RosterPatch) -> list[str]:
        """Patch every entry indexed under ``key``; return their connection ids."""
        async with self._lock:
            connection_ids = [
                cid for cid in self._entries if cid in self._by_identity.get(key, ())
            ]
            if not connection_ids:
                return []
            for cid in connection_ids:
                self._entries[cid] = self._entries[cid].patched(patch)
            version, payload = self._bump()
        await self._publish(version, payload)
        return connection_ids

    def snapshot(self) -> list[RosterEntry]:
        return list(self._entries.values())

    def connections_of(self, key: str) -> list[str]:
        members = self._by_identity.get(key, set())
        return [cid for cid in self._entries if cid in members]

    def moderator_connections(self) -> list[str]:
        return self.connections_of(MODERATOR_KEY)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _insert(self, connection_id: str, entry: RosterEntry) -> None:
        previous = self._entries.get(connection_id)
        if previous is not None:
            self._unindex(previous)
        self._entries[connection_id] = entry
        self._by_identity.setdefault(roster_key(entry), set()).add(connection_id)

    def _unindex(self, entry: RosterEntry) -> None:
        key = roster_key(entry)
        bucket = self._by_identity.get(key)
        if bucket is None:
            return
        bucket.discard(entry.connection_id)
        if not bucket:
            del self._by_identity[key]

    def _bump(self) -> tuple[int, list[dict[str, Any]]]:
        self._version += 1
        return self._version, [e.to_payload() for e in self._entries.values()]

    async def _publish(self, version: int, payload: list[dict[str, Any]]) -> None:
        async with self._broadcast_lock:
            if version < self._sent_version:
                logger.debug("Skipping stale roster v%d (sent v%d)", version, self._sent_version)
                return
            self._sent_version = version
            await self._transport.broadcast("roster", {"entries": payload})
