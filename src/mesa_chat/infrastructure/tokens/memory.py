"""Process-local token registry."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from mesa_chat.application.exceptions import NotFoundError
from mesa_chat.application.ports.clock import Clock, SystemClock
from mesa_chat.application.ports.tokens import TokenPredicate
from mesa_chat.domain.entities.session_token import TokenDescriptor, TokenRecord
from mesa_chat.infrastructure.tokens.generator import generate_token

logger = logging.getLogger(__name__)


class InMemoryTokenRegistry:
    """Lock-guarded token map with a per-identity index.

    Tokens are lost on restart; clients then fall back to a fresh login.
    Expired records are rejected on ``resolve`` and reclaimed by ``sweep``.
    """

    def __init__(self, ttl_seconds: int, clock: Clock | None = None) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or SystemClock()
        self._lock = asyncio.Lock()
        self._records: dict[str, TokenRecord] = {}
        self._by_identity: dict[str, set[str]] = {}

    async def issue(self, descriptor: TokenDescriptor) -> str:
        token = generate_token()
        now = self._clock.now()
        record = TokenRecord(
            token=token,
            descriptor=descriptor,
            created_at=now,
            expires_at=now + self._ttl,
        )
        async with self._lock:
            self._records[token] = record
            self._by_identity.setdefault(descriptor.index_key, set()).add(token)
        return token

    async def resolve(self, token: str) -> TokenDescriptor:
        async with self._lock:
            record = self._records.get(token)
        if record is None or record.is_expired(self._clock.now()):
            raise NotFoundError("Session token not found")
        return record.descriptor

    async def update(
        self,
        index_key: str,
        patch_name: str | None = None,
        patch_avatar: str | None = None,
        predicate: TokenPredicate | None = None,
    ) -> int:
        updated = 0
        async with self._lock:
            for token in self._by_identity.get(index_key, set()):
                record = self._records[token]
                if predicate is not None and not predicate(record.descriptor):
                    continue
                self._records[token] = TokenRecord(
                    token=record.token,
                    descriptor=record.descriptor.with_patch(patch_name, patch_avatar),
                    created_at=record.created_at,
                    expires_at=record.expires_at,
                )
                updated += 1
        return updated

    async def sweep(self) -> int:
        now = self._clock.now()
        async with self._lock:
            expired = [t for t, r in self._records.items() if r.is_expired(now)]
            for token in expired:
                record = self._records.pop(token)
                bucket = self._by_identity.get(record.descriptor.index_key)
                if bucket is not None:
                    bucket.discard(token)
                    if not bucket:
                        del self._by_identity[record.descriptor.index_key]
        if expired:
            logger.info("Swept %d expired session tokens", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)
