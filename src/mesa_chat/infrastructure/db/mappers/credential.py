from __future__ import annotations

import uuid

from mesa_chat.domain.entities.credential import Credential
from mesa_chat.domain.value_objects.enums import Role
from mesa_chat.infrastructure.db.models.credential import CredentialModel


def model_to_entity(model: CredentialModel) -> Credential:
    return Credential(
        id=str(model.id),
        name=model.name,
        password_hash=model.password_hash,
        role=Role(model.role),
        avatar=model.avatar,
        muted=model.muted,
    )


def entity_to_model(entity: Credential) -> CredentialModel:
    return CredentialModel(
        id=uuid.UUID(entity.id),
        name=entity.name,
        password_hash=entity.password_hash,
        role=entity.role.value,
        avatar=entity.avatar,
        muted=entity.muted,
    )
