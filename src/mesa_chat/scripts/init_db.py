"""One-time script: create the credential and message tables."""
from __future__ import annotations

import asyncio
import logging

from mesa_chat.config import settings
from mesa_chat.infrastructure.db import models  # noqa: F401
from mesa_chat.infrastructure.db.base import Base
from mesa_chat.infrastructure.db.session import create_db_engine

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    engine = create_db_engine(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))
    finally:
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_tables())


if __name__ == "__main__":
    main()
