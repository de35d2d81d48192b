from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from mesa_chat.api.middleware.correlation_id import correlation_id_ctx
from mesa_chat.infrastructure.ws.manager import ConnectionManager
from mesa_chat.infrastructure.ws.protocol import WsInbound, WsOutbound
from mesa_chat.services.session_controller import SessionController

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


@router.websocket("/ws/chat")
async def ws_chat(websocket: WebSocket) -> None:
    manager: ConnectionManager = websocket.app.state.manager
    controller: SessionController = websocket.app.state.engine.controller

    connection_id = uuid.uuid4().hex
    correlation_id_ctx.set(connection_id)
    await manager.connect(websocket, connection_id)
    await controller.on_connect(connection_id)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket, websocket.app.state.settings.WS_HEARTBEAT_SECONDS),
        name=f"ws-heartbeat-{connection_id}",
    )
    try:
        await _read_loop(websocket, connection_id, controller)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", connection_id)
    finally:
        heartbeat_task.cancel()
        manager.disconnect(connection_id)
        await controller.on_disconnect(connection_id)


async def _heartbeat(ws: WebSocket, interval: float) -> None:
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(WsOutbound(type="pong", data={}).model_dump_json())
    except asyncio.CancelledError:
        pass
    except Exception:
        pass


async def _read_loop(ws: WebSocket, connection_id: str, controller: SessionController) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await ws.send_text(
                WsOutbound(type="error", data={"code": "invalid_payload"}).model_dump_json()
            )
            continue

        if msg.type == "ping":
            await ws.send_text(WsOutbound(type="pong", data={}).model_dump_json())
        else:
            await controller.handle(connection_id, msg.type, msg.data)
