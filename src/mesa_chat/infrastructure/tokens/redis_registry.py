"""Redis-backed token registry; survives process restarts."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import timedelta
from typing import Iterator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from mesa_chat.application.exceptions import NotFoundError, TransientStoreError
from mesa_chat.application.ports.clock import Clock, SystemClock
from mesa_chat.application.ports.tokens import TokenPredicate
from mesa_chat.domain.entities.session_token import TokenDescriptor, TokenRecord
from mesa_chat.infrastructure.tokens.generator import generate_token
from mesa_chat.infrastructure.tokens.serializer import deserialize_record, serialize_record

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        raise TransientStoreError(str(exc)) from exc


def _load(token: str, raw: str | bytes) -> TokenRecord | None:
    try:
        return deserialize_record(raw)
    except (ValueError, KeyError, TypeError) as exc:
        logger.warning("Ignoring malformed token record %s...: %s", token[:8], exc)
        return None


class RedisTokenRegistry:
    """One string key per token (native TTL) plus one index set per identity.

    Index sets may hold members whose token key already expired; readers
    skip them and ``sweep`` removes them.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        ttl_seconds: int,
        *,
        prefix: str = "mesa:token",
        clock: Clock | None = None,
    ) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds
        self._prefix = prefix
        self._clock = clock or SystemClock()

    def _token_key(self, token: str) -> str:
        return f"{self._prefix}:{token}"

    def _index_key(self, index_key: str) -> str:
        return f"{self._prefix}:idx:{index_key}"

    async def issue(self, descriptor: TokenDescriptor) -> str:
        token = generate_token()
        now = self._clock.now()
        record = TokenRecord(
            token=token,
            descriptor=descriptor,
            created_at=now,
            expires_at=now + timedelta(seconds=self._ttl_seconds),
        )
        index = self._index_key(descriptor.index_key)
        with _store_errors():
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(self._token_key(token), serialize_record(record), ex=self._ttl_seconds)
                pipe.sadd(index, token)
                pipe.expire(index, self._ttl_seconds)
                await pipe.execute()
        return token

    async def resolve(self, token: str) -> TokenDescriptor:
        with _store_errors():
            raw = await self._redis.get(self._token_key(token))
        if raw is None:
            raise NotFoundError("Session token not found")
        record = _load(token, raw)
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
        with _store_errors():
            return await self._update(index_key, patch_name, patch_avatar, predicate)

    async def _update(
        self,
        index_key: str,
        patch_name: str | None,
        patch_avatar: str | None,
        predicate: TokenPredicate | None,
    ) -> int:
        index = self._index_key(index_key)
        tokens = await self._redis.smembers(index)
        updated = 0
        for token in tokens:
            key = self._token_key(token)
            raw = await self._redis.get(key)
            if raw is None:
                await self._redis.srem(index, token)
                continue
            record = _load(token, raw)
            if record is None:
                continue
            if predicate is not None and not predicate(record.descriptor):
                continue
            record = replace(
                record, descriptor=record.descriptor.with_patch(patch_name, patch_avatar)
            )
            # xx: never resurrect a key that expired between GET and SET.
            if await self._redis.set(key, serialize_record(record), keepttl=True, xx=True):
                updated += 1
        return updated

    async def sweep(self) -> int:
        removed = 0
        with _store_errors():
            async for index in self._redis.scan_iter(match=self._index_key("*")):
                for token in await self._redis.smembers(index):
                    if not await self._redis.exists(self._token_key(token)):
                        removed += await self._redis.srem(index, token)
        if removed:
            logger.info("Pruned %d expired token index entries", removed)
        return removed
