"""Seed development data: a couple of participants and some table talk."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from mesa_chat.config import settings
from mesa_chat.domain.entities.credential import Credential
from mesa_chat.domain.entities.message import ChatMessage
from mesa_chat.domain.value_objects.enums import Role
from mesa_chat.infrastructure.auth.bcrypt_hasher import BcryptHasher
from mesa_chat.infrastructure.db.session import create_db_engine, create_session_factory
from mesa_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

PARTICIPANTS = [("Ana", "a1", "1234"), ("Bob", "a2", "abcd")]


async def seed() -> None:
    hasher = BcryptHasher(settings.BCRYPT_ROUNDS)
    engine = create_db_engine(settings)
    try:
        await _seed(create_session_factory(engine), hasher)
    finally:
        await engine.dispose()


async def _seed(session_factory, hasher: BcryptHasher) -> None:
    async with session_factory() as session:
        uow = SqlAlchemyUoW(session)
        now = datetime.now(timezone.utc)

        authors: dict[str, Credential] = {}
        for name, avatar, password in PARTICIPANTS:
            existing = await uow.credentials.get_by_name(name)
            if existing is not None:
                authors[name] = existing
                continue
            authors[name] = await uow.credentials_w.create(
                Credential(
                    id=str(uuid.uuid4()),
                    name=name,
                    password_hash=await hasher.hash(password),
                    role=Role.PARTICIPANT,
                    avatar=avatar,
                    muted=False,
                )
            )

        lines = [
            (settings.MODERATOR_NAME, None, "Bem-vindos à mesa!"),
            ("Ana", authors["Ana"], "Olá a todos."),
            ("Bob", authors["Bob"], "Rolando iniciativa..."),
        ]
        for offset, (name, author, text) in enumerate(lines):
            role = Role.PARTICIPANT if author is not None else Role.MODERATOR
            await uow.messages_w.append(
                ChatMessage(
                    id=str(uuid.uuid4()),
                    name=name,
                    text=text,
                    avatar=author.avatar if author is not None else None,
                    role=role.value,
                    author_id=author.id if author is not None else None,
                    created_at=now + timedelta(seconds=offset),
                )
            )

        await uow.commit()
        logger.info("Seeded %d participants and %d messages", len(authors), len(lines))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
