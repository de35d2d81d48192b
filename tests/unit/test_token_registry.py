from __future__ import annotations

import pytest

from mesa_chat.application.exceptions import NotFoundError
from mesa_chat.domain.entities.session_token import TokenDescriptor
from mesa_chat.domain.value_objects.enums import Role
from tests.conftest import WEEK

ANA = TokenDescriptor(role=Role.PARTICIPANT, identity_id="id-ana")
MODERATOR = TokenDescriptor(role=Role.MODERATOR, name="Mestre", avatar="m1")


@pytest.mark.asyncio
async def test_issue_then_resolve(tokens):
    token = await tokens.issue(ANA)

    assert len(token) == 48
    assert await tokens.resolve(token) == ANA


@pytest.mark.asyncio
async def test_tokens_are_unique_per_issue(tokens):
    first = await tokens.issue(ANA)
    second = await tokens.issue(ANA)

    assert first != second
    assert len(tokens) == 2


@pytest.mark.asyncio
async def test_resolve_unknown_token(tokens):
    with pytest.raises(NotFoundError):
        await tokens.resolve("nope")


@pytest.mark.asyncio
async def test_token_expires_after_ttl(tokens, clock):
    token = await tokens.issue(ANA)

    clock.advance(WEEK - 1)
    assert await tokens.resolve(token) == ANA

    clock.advance(1)
    with pytest.raises(NotFoundError):
        await tokens.resolve(token)


@pytest.mark.asyncio
async def test_resolve_does_not_extend_expiry(tokens, clock):
    token = await tokens.issue(ANA)

    clock.advance(6 * 24 * 3600)
    await tokens.resolve(token)
    clock.advance(24 * 3600 + 1)

    with pytest.raises(NotFoundError):
        await tokens.resolve(token)


@pytest.mark.asyncio
async def test_update_patches_every_moderator_token(tokens):
    t1 = await tokens.issue(MODERATOR)
    t2 = await tokens.issue(MODERATOR)
    participant = await tokens.issue(ANA)

    updated = await tokens.update("moderator", patch_name="Narrador")

    assert updated == 2
    assert (await tokens.resolve(t1)).name == "Narrador"
    assert (await tokens.resolve(t2)).name == "Narrador"
    assert (await tokens.resolve(t2)).avatar == "m1"
    assert (await tokens.resolve(participant)) == ANA


@pytest.mark.asyncio
async def test_update_keeps_original_expiry(tokens, clock):
    token = await tokens.issue(MODERATOR)
    clock.advance(WEEK - 10)

    await tokens.update("moderator", patch_avatar="m2")
    clock.advance(10)

    with pytest.raises(NotFoundError):
        await tokens.resolve(token)


@pytest.mark.asyncio
async def test_update_respects_predicate(tokens):
    keep = await tokens.issue(MODERATOR)
    other = await tokens.issue(TokenDescriptor(role=Role.MODERATOR, name="Velho", avatar=None))

    updated = await tokens.update(
        "moderator", patch_name="Novo", predicate=lambda d: d.name == "Velho",
    )

    assert updated == 1
    assert (await tokens.resolve(keep)).name == "Mestre"
    assert (await tokens.resolve(other)).name == "Novo"


@pytest.mark.asyncio
async def test_sweep_removes_only_expired(tokens, clock):
    old = await tokens.issue(ANA)
    clock.advance(WEEK // 2)
    fresh = await tokens.issue(ANA)
    clock.advance(WEEK // 2 + 1)

    removed = await tokens.sweep()

    assert removed == 1
    assert len(tokens) == 1
    assert await tokens.resolve(fresh) == ANA
    with pytest.raises(NotFoundError):
        await tokens.resolve(old)


def test_descriptor_index_key():
    assert ANA.index_key == "id-ana"
    assert MODERATOR.index_key == "moderator"


def test_descriptor_dict_form_is_stable():
    assert TokenDescriptor.from_dict(MODERATOR.to_dict()) == MODERATOR


def test_participant_descriptor_requires_identity_id():
    with pytest.raises(ValueError):
        TokenDescriptor(role=Role.PARTICIPANT)
    with pytest.raises(ValueError):
        TokenDescriptor.from_dict({"role": "participant", "identity_id": None})
