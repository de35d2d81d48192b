from __future__ import annotations

import uuid

from mesa_chat.application.policies.permissions import assert_moderator
from mesa_chat.application.ports.clock import Clock
from mesa_chat.application.uow import UnitOfWork
from mesa_chat.domain.entities.identity import Identity
from mesa_chat.domain.entities.message import ChatMessage


async def post_message(
    author: Identity,
    text: str,
    uow: UnitOfWork,
    clock: Clock,
    *,
    max_length: int = 500,
) -> ChatMessage:
    """Persist a message. Send permission is checked by the caller."""
    msg = ChatMessage(
        id=str(uuid.uuid4()),
        name=author.name,
        text=text[:max_length],
        avatar=author.avatar,
        role=author.role.value,
        author_id=author.identity_id,
        created_at=clock.now(),
    )
    msg = await uow.messages_w.append(msg)
    await uow.commit()
    return msg


async def delete_message(actor: Identity | None, message_id: str, uow: UnitOfWork) -> bool:
    assert_moderator(actor)
    deleted = await uow.messages_w.delete(message_id)
    await uow.commit()
    return deleted


async def clear_all(actor: Identity | None, uow: UnitOfWork) -> int:
    assert_moderator(actor)
    count = await uow.messages_w.delete_all()
    await uow.commit()
    return count


async def list_history(uow: UnitOfWork, limit: int = 500) -> list[ChatMessage]:
    return await uow.messages.list_recent(limit)
