from __future__ import annotations

from fastapi import APIRouter, Query

from mesa_chat.api.deps import UoWDep
from mesa_chat.api.v1.schemas.message import MessageResponse
from mesa_chat.services import message_service

router = APIRouter(prefix="/api/v1/chat/messages", tags=["messages"])


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    uow: UoWDep,
    limit: int = Query(50, ge=1, le=500),
) -> list[MessageResponse]:
    messages = await message_service.list_history(uow, limit)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]
