"""Shared test fixtures."""
from __future__ import annotations

import uuid

import pytest

from mesa_chat.config import Settings
from mesa_chat.domain.entities.credential import Credential
from mesa_chat.domain.value_objects.enums import Role
from mesa_chat.infrastructure.tokens.memory import InMemoryTokenRegistry
from mesa_chat.services.engine import ChatEngine, build_engine
from tests.fakes import FakeClock, FakeUoW, PlainHasher, RecordingTransport

ADMIN_SECRET = "segredo-do-mestre"
WEEK = 7 * 24 * 3600


def make_settings(**overrides) -> Settings:
    values = {
        "ADMIN_SECRET": ADMIN_SECRET,
        "TOKEN_BACKEND": "memory",
        "TOKEN_TTL_SECONDS": WEEK,
        "MODERATOR_SESSIONS": "plural",
    }
    values.update(overrides)
    return Settings(**values)


def make_credential(
    *,
    name: str = "Ana",
    password: str = "1234",
    role: Role = Role.PARTICIPANT,
    avatar: str | None = "a1",
    muted: bool = False,
) -> Credential:
    return Credential(
        id=str(uuid.uuid4()),
        name=name,
        password_hash=f"plain${password}",
        role=role,
        avatar=avatar,
        muted=muted,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


@pytest.fixture
def tokens(clock) -> InMemoryTokenRegistry:
    return InMemoryTokenRegistry(WEEK, clock=clock)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def engine(settings, transport, tokens, uow, clock) -> ChatEngine:
    return build_engine(
        settings,
        transport=transport,
        tokens=tokens,
        hasher=PlainHasher(),
        uow_factory=uow.factory(),
        clock=clock,
    )
