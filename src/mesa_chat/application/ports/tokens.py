from __future__ import annotations

from typing import Callable, Protocol

from mesa_chat.domain.entities.session_token import TokenDescriptor

TokenPredicate = Callable[[TokenDescriptor], bool]


class TokenRegistry(Protocol):
    async def issue(self, descriptor: TokenDescriptor) -> str: ...

    async def resolve(self, token: str) -> TokenDescriptor:
        """Raise NotFoundError for unknown or expired tokens."""
        ...

    async def update(
        self,
        index_key: str,
        patch_name: str | None = None,
        patch_avatar: str | None = None,
        predicate: TokenPredicate | None = None,
    ) -> int:
        """Patch name/avatar on every live token indexed under ``index_key``.

        Returns the number of records updated.
        """
        ...

    async def sweep(self) -> int: ...
