from __future__ import annotations

import uuid

from mesa_chat.domain.entities.message import ChatMessage
from mesa_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> ChatMessage:
    return ChatMessage(
        id=str(model.id),
        name=model.name,
        text=model.text,
        avatar=model.avatar,
        role=model.role,
        author_id=str(model.author_id) if model.author_id else None,
        created_at=model.created_at,
    )


def entity_to_model(entity: ChatMessage) -> MessageModel:
    return MessageModel(
        id=uuid.UUID(entity.id),
        name=entity.name,
        text=entity.text,
        avatar=entity.avatar,
        role=entity.role,
        author_id=uuid.UUID(entity.author_id) if entity.author_id else None,
        created_at=entity.created_at,
    )
