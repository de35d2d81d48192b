from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mesa_chat.domain.entities.message import ChatMessage
from mesa_chat.infrastructure.db.mappers import message as mapper
from mesa_chat.infrastructure.db.models.message import MessageModel
from mesa_chat.infrastructure.db.repositories._ids import parse_uuid


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_recent(self, limit: int = 500) -> list[ChatMessage]:
        stmt = (
            select(MessageModel)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        rows = list(result.scalars().all())
        rows.reverse()
        return [mapper.model_to_entity(m) for m in rows]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, message: ChatMessage) -> ChatMessage:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def delete(self, message_id: str) -> bool:
        pk = parse_uuid(message_id)
        if pk is None:
            return False
        result = await self._session.execute(
            delete(MessageModel).where(MessageModel.id == pk)
        )
        return result.rowcount > 0

    async def delete_all(self) -> int:
        result = await self._session.execute(delete(MessageModel))
        return result.rowcount
