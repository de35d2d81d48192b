from __future__ import annotations

from fastapi import APIRouter

from mesa_chat.api.deps import EngineDep
from mesa_chat.api.v1.schemas.roster import RosterEntryResponse, RosterResponse

router = APIRouter(prefix="/api/v1/chat/roster", tags=["presence"])


@router.get("", response_model=RosterResponse)
async def get_roster(engine: EngineDep) -> RosterResponse:
    return RosterResponse(
        entries=[
            RosterEntryResponse.model_validate(e, from_attributes=True)
            for e in engine.roster.snapshot()
        ],
        global_muted=engine.moderation.global_muted,
    )
