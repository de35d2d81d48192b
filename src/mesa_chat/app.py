from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mesa_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from mesa_chat.api.v1.routers import health, messages, roster, ws
from mesa_chat.application.exceptions import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from mesa_chat.application.ports.auth import PasswordHasher
from mesa_chat.application.ports.tokens import TokenRegistry
from mesa_chat.application.uow import UoWFactory
from mesa_chat.config import Settings, settings as default_settings
from mesa_chat.infrastructure.auth.bcrypt_hasher import BcryptHasher
from mesa_chat.infrastructure.db.session import create_db_engine, create_session_factory
from mesa_chat.infrastructure.db.uow import make_uow_factory
from mesa_chat.infrastructure.tokens.memory import InMemoryTokenRegistry
from mesa_chat.infrastructure.tokens.redis_registry import RedisTokenRegistry
from mesa_chat.infrastructure.ws.manager import ConnectionManager
from mesa_chat.services.engine import build_engine
from mesa_chat.workers.periodic import PeriodicTask

logger = logging.getLogger(__name__)


def create_app(
    *,
    app_settings: Settings | None = None,
    uow_factory: UoWFactory | None = None,
    hasher: PasswordHasher | None = None,
    tokens: TokenRegistry | None = None,
) -> FastAPI:
    cfg = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Startup / shutdown lifecycle."""
        app.state.settings = cfg
        app.state.redis = None
        registry = tokens
        if registry is None and cfg.TOKEN_BACKEND == "redis":
            app.state.redis = aioredis.from_url(cfg.REDIS_URL, decode_responses=True)
            logger.info("Redis connection pool created")
            registry = RedisTokenRegistry(
                app.state.redis, cfg.TOKEN_TTL_SECONDS, prefix=cfg.TOKEN_KEY_PREFIX,
            )
        elif registry is None:
            registry = InMemoryTokenRegistry(cfg.TOKEN_TTL_SECONDS)
            logger.warning("Session tokens are held in memory and will not survive a restart")

        db_engine = None
        if uow_factory is None:
            db_engine = create_db_engine(cfg)
            app.state.uow_factory = make_uow_factory(create_session_factory(db_engine))
        else:
            app.state.uow_factory = uow_factory
        app.state.manager = ConnectionManager()
        app.state.engine = build_engine(
            cfg,
            transport=app.state.manager,
            tokens=registry,
            hasher=hasher or BcryptHasher(cfg.BCRYPT_ROUNDS),
            uow_factory=app.state.uow_factory,
        )

        sweepers = [
            PeriodicTask(
                "typing-sweeper", cfg.TYPING_SWEEP_SECONDS, app.state.engine.controller.expire_typing,
            ),
            PeriodicTask("token-sweeper", cfg.TOKEN_SWEEP_SECONDS, registry.sweep),
        ]
        for task in sweepers:
            await task.start()

        yield

        for task in sweepers:
            await task.stop()
        if app.state.redis is not None:
            await app.state.redis.aclose()
            logger.info("Redis connection pool closed")
        if db_engine is not None:
            await db_engine.dispose()
            logger.info("Database engine disposed")

    app = FastAPI(
        title="Mesa Chat",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(messages.router)
    app.include_router(roster.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(AuthError)
    async def _auth(_req: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(TransientStoreError)
    async def _store(_req: Request, exc: TransientStoreError) -> JSONResponse:
        logger.error("Store unavailable: %s", exc.detail)
        return JSONResponse(status_code=503, content={"detail": "store unavailable"})
