from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from mesa_chat.config import Settings


def create_db_engine(cfg: Settings) -> AsyncEngine:
    return create_async_engine(
        cfg.database_url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=cfg.DB_POOL_SIZE,
        max_overflow=cfg.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=cfg.DB_POOL_RECYCLE,
        echo=False,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
