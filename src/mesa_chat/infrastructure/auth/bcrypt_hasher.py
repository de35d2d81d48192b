from __future__ import annotations

import asyncio

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


class BcryptHasher:
    """bcrypt hashing run in a worker thread so it never blocks the event loop."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self._hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self._verify_sync, password, password_hash)

    def _hash_sync(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("ascii")

    def _verify_sync(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
        except ValueError:
            return False
