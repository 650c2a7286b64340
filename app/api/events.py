# app/api/events.py
import asyncio

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.api.deps import Principal, get_ws_control_plane, require_ws_admin
from app.core.logger import get_logger
from app.services.context import ControlPlane

logger = get_logger(__name__)

router = APIRouter(tags=["events"])


@router.websocket("/ws/events")
async def container_events(
    websocket: WebSocket,
    plane: ControlPlane = Depends(get_ws_control_plane),
    principal: Principal = Depends(require_ws_admin),
):
    """Push container.updated / container.removed events as JSON messages."""
    # subscribe before accepting so nothing published after the handshake is missed
    queue = plane.events.subscribe()

    async def forward():
        while True:
            await websocket.send_json(await queue.get())

    sender = None
    try:
        await websocket.accept()
        logger.info(f"Event subscriber {principal.email} connected ({plane.events.subscriber_count} total)")
        sender = asyncio.create_task(forward())
        while True:
            # clients only listen; reading is how a disconnect is noticed
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        if sender is not None:
            sender.cancel()
        plane.events.unsubscribe(queue)
        logger.info(f"Event subscriber {principal.email} disconnected")
