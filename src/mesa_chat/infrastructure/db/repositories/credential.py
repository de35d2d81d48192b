from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mesa_chat.application.exceptions import ConflictError
from mesa_chat.domain.entities.credential import Credential
from mesa_chat.infrastructure.db.mappers import credential as mapper
from mesa_chat.infrastructure.db.models.credential import CredentialModel
from mesa_chat.infrastructure.db.repositories._ids import parse_uuid


class CredentialReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, identity_id: str) -> Credential | None:
        pk = parse_uuid(identity_id)
        if pk is None:
            return None
        model = await self._session.get(CredentialModel, pk, populate_existing=True)
        return mapper.model_to_entity(model) if model else None

    async def get_by_name(self, name: str) -> Credential | None:
        stmt = select(CredentialModel).where(CredentialModel.name == name)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None


class CredentialWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, credential: Credential) -> Credential:
        model = mapper.entity_to_model(credential)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError(f"Name {credential.name!r} already taken") from exc
        return mapper.model_to_entity(model)

    async def set_muted(self, identity_id: str, muted: bool) -> bool:
        pk = parse_uuid(identity_id)
        if pk is None:
            return False
        stmt = (
            update(CredentialModel)
            .where(CredentialModel.id == pk)
            .values(muted=muted)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0
