from __future__ import annotations

import pytest

from mesa_chat.services.typing_indicator import TypingAggregator
from tests.fakes import FakeClock


@pytest.fixture
def typing(clock) -> TypingAggregator:
    return TypingAggregator(3.0, clock=clock)


def test_mark_announces_new_name(typing):
    assert typing.mark_typing("Ana") == frozenset({"Ana"})
    assert typing.mark_typing("Bob") == frozenset({"Ana", "Bob"})


def test_repeated_mark_is_not_reannounced_immediately(typing, clock):
    typing.mark_typing("Ana")
    clock.advance(1.0)

    assert typing.mark_typing("Ana") is None
    assert typing.is_typing("Ana")


def test_reannounce_after_half_ttl(typing, clock):
    typing.mark_typing("Ana")
    clock.advance(1.5)

    assert typing.mark_typing("Ana") == frozenset({"Ana"})


def test_marker_lapses_after_ttl(typing, clock):
    typing.mark_typing("Ana")
    clock.advance(3.0)

    assert typing.active() == frozenset()


def test_refresh_extends_deadline(typing, clock: FakeClock):
    typing.mark_typing("Ana")
    clock.advance(2.0)
    typing.mark_typing("Ana")
    clock.advance(2.0)

    assert typing.is_typing("Ana")


def test_clear_typing(typing):
    typing.mark_typing("Ana")
    typing.mark_typing("Bob")

    assert typing.clear_typing("Ana") == frozenset({"Bob"})
    assert typing.clear_typing("Ana") is None


def test_expire_reports_each_lapse_once(typing, clock):
    typing.mark_typing("Ana")
    typing.mark_typing("Bob")
    clock.advance(1.0)
    typing.mark_typing("Bob")
    clock.advance(2.5)

    assert typing.expire() == ["Ana"]
    assert typing.expire() == []

    clock.advance(1.0)
    assert typing.expire() == ["Bob"]


def test_expire_skips_names_typing_again(typing, clock):
    typing.mark_typing("Ana")
    clock.advance(3.0)
    typing.active()
    typing.mark_typing("Ana")

    assert typing.expire() == []
    assert typing.is_typing("Ana")


def test_cleared_name_is_not_reported_as_lapsed(typing, clock):
    typing.mark_typing("Ana")
    typing.clear_typing("Ana")
    clock.advance(5.0)

    assert typing.expire() == []
