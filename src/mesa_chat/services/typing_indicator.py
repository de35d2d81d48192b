"""Expiring "is typing" markers."""
from __future__ import annotations

from datetime import datetime, timedelta

from mesa_chat.application.ports.clock import Clock, SystemClock


class TypingAggregator:
    """Per-name deadlines collapsed into the displayed set.

    Methods never await, so each call is atomic on the event loop. Expiry is
    pull-based: every read prunes elapsed deadlines first, and ``expire``
    lets a periodic sweeper announce the names that lapsed.
    """

    def __init__(self, ttl_seconds: float = 3.0, clock: Clock | None = None) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or SystemClock()
        self._deadlines: dict[str, datetime] = {}
        self._announced: dict[str, datetime] = {}
        self._lapsed: list[str] = []

    def mark_typing(self, name: str) -> frozenset[str] | None:
        """Refresh ``name``; return the display set when it should be announced.

        A name is announced when it enters the set, and again once half the
        TTL has passed since the last announcement so that clients running
        their own TTL timer keep showing someone who is still typing.
        """
        now = self._clock.now()
        self._prune(now)
        self._deadlines[name] = now + self._ttl
        last = self._announced.get(name)
        if last is not None and now - last < self._ttl / 2:
            return None
        self._announced[name] = now
        return frozenset(self._deadlines)

    def clear_typing(self, name: str) -> frozenset[str] | None:
        self._prune(self._clock.now())
        if self._deadlines.pop(name, None) is None:
            return None
        self._announced.pop(name, None)
        return frozenset(self._deadlines)

    def active(self) -> frozenset[str]:
        self._prune(self._clock.now())
        return frozenset(self._deadlines)

    def expire(self) -> list[str]:
        """Names whose deadline lapsed since the previous call."""
        self._prune(self._clock.now())
        lapsed = [name for name in dict.fromkeys(self._lapsed) if name not in self._deadlines]
        self._lapsed.clear()
        return lapsed

    def is_typing(self, name: str) -> bool:
        return name in self.active()

    def _prune(self, now: datetime) -> None:
        expired = [name for name, deadline in self._deadlines.items() if deadline <= now]
        for name in expired:
            del self._deadlines[name]
            self._announced.pop(name, None)
        self._lapsed.extend(expired)
