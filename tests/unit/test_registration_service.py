from __future__ import annotations

import pytest

from mesa_chat.application.exceptions import (
    AuthError,
    BadPasswordError,
    ConflictError,
    NameUnavailableError,
    ValidationError,
)
from mesa_chat.domain.entities.identity import ModeratorIdentity, ParticipantIdentity
from mesa_chat.domain.value_objects.enums import Role
from mesa_chat.services import registration_service
from tests.conftest import make_credential
from tests.fakes import PlainHasher


@pytest.fixture
def hasher() -> PlainHasher:
    return PlainHasher()


@pytest.mark.asyncio
async def test_first_registration_creates_credential(uow, hasher):
    identity = await registration_service.register_participant("Ana", "a1", "1234", uow, hasher)

    assert isinstance(identity, ParticipantIdentity)
    assert identity.name == "Ana"
    assert identity.muted is False
    stored = await uow.credentials.get_by_name("Ana")
    assert stored.id == identity.identity_id
    assert stored.password_hash == "plain$1234"
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_name_is_trimmed(uow, hasher):
    identity = await registration_service.register_participant("  Ana ", "a1", "1234", uow, hasher)

    assert identity.name == "Ana"


@pytest.mark.asyncio
async def test_returning_participant_keeps_identity(uow, hasher):
    first = await registration_service.register_participant("Ana", "a1", "1234", uow, hasher)
    second = await registration_service.register_participant("Ana", "a9", "1234", uow, hasher)

    assert second.identity_id == first.identity_id
    assert second.avatar == "a1"
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_wrong_password(uow, hasher):
    uow.add_credential(make_credential(name="Bob", password="abcd"))

    with pytest.raises(BadPasswordError) as exc:
        await registration_service.register_participant("Bob", "a2", "zzzz", uow, hasher)
    assert exc.value.detail == "Senha incorreta."


@pytest.mark.asyncio
async def test_name_held_by_non_participant(uow, hasher):
    uow.add_credential(make_credential(name="Mestre", role=Role.MODERATOR))

    with pytest.raises(NameUnavailableError) as exc:
        await registration_service.register_participant("Mestre", "a1", "1234", uow, hasher)
    assert exc.value.detail == "Nome indisponível."


@pytest.mark.asyncio
async def test_lost_creation_race_logs_in_against_winner(uow, hasher):
    winner = make_credential(name="Ana", password="1234")

    async def _absent(name):
        return None

    real_get_by_name = uow.credentials.get_by_name
    uow.credentials.get_by_name = _absent
    uow.add_credential(winner)

    async def _create(credential):
        uow.credentials.get_by_name = real_get_by_name
        raise ConflictError("Name 'Ana' already taken")

    uow.credentials_w.create = _create

    identity = await registration_service.register_participant("Ana", "a1", "1234", uow, hasher)

    assert identity.identity_id == winner.id
    assert uow.rollbacks == 1


@pytest.mark.parametrize(
    ("name", "avatar", "password", "reason"),
    [
        ("", "a1", "1234", "Nome, avatar e senha são obrigatórios."),
        ("Ana", None, "1234", "Nome, avatar e senha são obrigatórios."),
        ("Ana", "a1", None, "Nome, avatar e senha são obrigatórios."),
        ("x" * 21, "a1", "1234", "Nome muito longo (máx 20 caracteres)."),
        ("Ana", "a1", "123", "Senha muito curta (mín 4 caracteres)."),
    ],
)
def test_field_validation(name, avatar, password, reason):
    with pytest.raises(ValidationError) as exc:
        registration_service.validate_participant_fields(name, avatar, password)
    assert exc.value.detail == reason


def test_moderator_secret_accepted():
    identity = registration_service.authenticate_moderator("s3cret", "s3cret", "m1", name="Mestre")

    assert identity == ModeratorIdentity(name="Mestre", avatar="m1")


@pytest.mark.parametrize(("given", "configured"), [("wrong", "s3cret"), (None, "s3cret"), ("", "")])
def test_moderator_secret_rejected(given, configured):
    with pytest.raises(AuthError) as exc:
        registration_service.authenticate_moderator(given, configured, "m1")
    assert exc.value.detail == "Senha do mestre incorreta."
