from __future__ import annotations

from contextlib import asynccontextmanager
from types import TracebackType
from typing import AsyncIterator, Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mesa_chat.application.exceptions import TransientStoreError
from mesa_chat.infrastructure.db.repositories.credential import (
    CredentialReaderRepo,
    CredentialWriterRepo,
)
from mesa_chat.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
)


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.credentials = CredentialReaderRepo(session)
        self.credentials_w = CredentialWriterRepo(session)
        self.messages = MessageReaderRepo(session)
        self.messages_w = MessageWriterRepo(session)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()


def make_uow_factory(session_factory: async_sessionmaker[AsyncSession]):
    """Build the per-operation UoW factory handed to the session controller.

    Driver and connection failures surface as TransientStoreError.
    """

    @asynccontextmanager
    async def _factory() -> AsyncIterator[SqlAlchemyUoW]:
        try:
            async with session_factory() as session:
                async with SqlAlchemyUoW(session) as uow:
                    yield uow
        except SQLAlchemyError as exc:
            raise TransientStoreError(str(exc)) from exc

    return _factory
