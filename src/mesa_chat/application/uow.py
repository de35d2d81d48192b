from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from mesa_chat.application.repositories.credential import (
    CredentialReader,
    CredentialWriter,
)
from mesa_chat.application.repositories.message import MessageReader, MessageWriter


class UnitOfWork(Protocol):
    credentials: CredentialReader
    credentials_w: CredentialWriter
    messages: MessageReader
    messages_w: MessageWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
