"""Background sweepers started from the app lifespan."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[Any]]


class PeriodicTask:
    """Run ``callback`` every ``interval`` seconds until stopped."""

    def __init__(self, name: str, interval: float, callback: TickCallback) -> None:
        self._name = name
        self._interval = interval
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name=self._name)
        logger.info("%s started (every %.1fs)", self._name, self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("%s stopped", self._name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s tick failed", self._name)
