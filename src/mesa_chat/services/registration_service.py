from __future__ import annotations

import hmac
import logging
import uuid

from mesa_chat.application.exceptions import (
    AuthError,
    BadPasswordError,
    ConflictError,
    NameUnavailableError,
    ValidationError,
)
from mesa_chat.application.ports.auth import PasswordHasher
from mesa_chat.application.uow import UnitOfWork
from mesa_chat.domain.entities.credential import Credential
from mesa_chat.domain.entities.identity import ModeratorIdentity, ParticipantIdentity
from mesa_chat.domain.value_objects.enums import Role

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Nome, avatar e senha são obrigatórios."
NAME_TOO_LONG = "Nome muito longo (máx {limit} caracteres)."
PASSWORD_TOO_SHORT = "Senha muito curta (mín {limit} caracteres)."
NAME_UNAVAILABLE = "Nome indisponível."
BAD_PASSWORD = "Senha incorreta."
BAD_MODERATOR_SECRET = "Senha do mestre incorreta."


def validate_participant_fields(
    name: str | None,
    avatar: str | None,
    password: str | None,
    *,
    name_max_length: int = 20,
    password_min_length: int = 4,
) -> tuple[str, str, str]:
    """Return the normalized (name, avatar, password) or raise ValidationError."""
    name = (name or "").strip()
    avatar = avatar or ""
    password = password or ""
    if not name or not avatar or not password:
        raise ValidationError(MISSING_FIELDS)
    if len(name) > name_max_length:
        raise ValidationError(NAME_TOO_LONG.format(limit=name_max_length))
    if len(password) < password_min_length:
        raise ValidationError(PASSWORD_TOO_SHORT.format(limit=password_min_length))
    return name, avatar, password


async def register_participant(
    name: str | None,
    avatar: str | None,
    password: str | None,
    uow: UnitOfWork,
    hasher: PasswordHasher,
    *,
    name_max_length: int = 20,
    password_min_length: int = 4,
) -> ParticipantIdentity:
    """Log in an existing participant or create one on first use."""
    name, avatar, password = validate_participant_fields(
        name,
        avatar,
        password,
        name_max_length=name_max_length,
        password_min_length=password_min_length,
    )

    credential = await uow.credentials.get_by_name(name)
    if credential is None:
        password_hash = await hasher.hash(password)
        try:
            credential = await uow.credentials_w.create(
                Credential(
                    id=str(uuid.uuid4()),
                    name=name,
                    password_hash=password_hash,
                    role=Role.PARTICIPANT,
                    avatar=avatar,
                    muted=False,
                )
            )
            await uow.commit()
            logger.info("Created participant %s", name)
            return _identity(credential)
        except ConflictError:
            # Lost a race for the same name: log in against the winner.
            await uow.rollback()
            credential = await uow.credentials.get_by_name(name)
            if credential is None:
                raise
    await _check_existing(credential, password, hasher)
    return _identity(credential)


def authenticate_moderator(
    secret: str | None,
    configured_secret: str,
    avatar: str | None,
    *,
    name: str = "Mestre",
) -> ModeratorIdentity:
    if not configured_secret or not hmac.compare_digest(
        (secret or "").encode("utf-8"), configured_secret.encode("utf-8"),
    ):
        raise AuthError(BAD_MODERATOR_SECRET)
    return ModeratorIdentity(name=name, avatar=avatar or None)


async def _check_existing(
    credential: Credential,
    password: str,
    hasher: PasswordHasher,
) -> None:
    if credential.role != Role.PARTICIPANT:
        raise NameUnavailableError(NAME_UNAVAILABLE)
    if not await hasher.verify(password, credential.password_hash):
        raise BadPasswordError(BAD_PASSWORD)


def _identity(credential: Credential) -> ParticipantIdentity:
    return ParticipantIdentity(
        identity_id=credential.id,
        name=credential.name,
        avatar=credential.avatar,
        muted=credential.muted,
    )


def identity_from_credential(credential: Credential | None) -> ParticipantIdentity | None:
    if credential is None or credential.role != Role.PARTICIPANT:
        return None
    return _identity(credential)
