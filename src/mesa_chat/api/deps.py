"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request

from mesa_chat.application.uow import UnitOfWork
from mesa_chat.services.engine import ChatEngine


async def get_uow(request: Request) -> AsyncIterator[UnitOfWork]:
    async with request.app.state.uow_factory() as uow:
        yield uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


def get_engine(request: Request) -> ChatEngine:
    return request.app.state.engine


EngineDep = Annotated[ChatEngine, Depends(get_engine)]
