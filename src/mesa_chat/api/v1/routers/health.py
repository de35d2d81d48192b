from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(request: Request) -> dict[str, Any]:
    engine = request.app.state.engine
    return {
        "status": "ok",
        "connections": len(request.app.state.manager),
        "online": len(engine.roster),
        "globalMuted": engine.moderation.global_muted,
    }


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    """Ready when the message store answers and, if configured, Redis pings."""
    checks: dict[str, str] = {}

    try:
        async with request.app.state.uow_factory() as uow:
            await uow.messages.list_recent(1)
        checks["database"] = "ok"
    except Exception as exc:  # noqa: BLE001
        checks["database"] = str(exc) or type(exc).__name__

    redis = getattr(request.app.state, "redis", None)
    if redis is not None:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:  # noqa: BLE001
            checks["redis"] = str(exc) or type(exc).__name__

    ready = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "unavailable", "checks": checks},
    )
