from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from stylesquare.core.config import settings
from stylesquare.db.session import SessionLocal
from stylesquare.services.auth import get_current_user_from_ws
from stylesquare.services.notifications import channel_for
from stylesquare.services.ws import fanout, log_listener_failure

logger = logging.getLogger(__name__)

notifications_ws_router = APIRouter(tags=["ws-notifications"])

WS_UNAUTHORIZED = 4401
WS_REALTIME_DISABLED = 4503


@notifications_ws_router.websocket("/notifications")
async def ws_notifications(websocket: WebSocket) -> None:
    await websocket.accept()

    if not settings.realtime_enabled:
        await websocket.close(code=WS_REALTIME_DISABLED, reason="Realtime notifications are disabled")
        return

    listener_task = None
    channel = ""

    try:
        async with SessionLocal() as db:
            try:
                auth_user = await get_current_user_from_ws(websocket, db)
            except HTTPException:
                await websocket.close(code=WS_UNAUTHORIZED)
                return

        channel = channel_for(auth_user.user_id)
        listener_task = asyncio.create_task(fanout.subscribe_loop(channel, websocket), name=f"relay:{channel}")
        listener_task.add_done_callback(log_listener_failure)

        while True:
            msg = await websocket.receive_text()
            if msg.lower().strip() == "ping":
                await websocket.send_text('{"type":"pong"}')

    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Notification websocket failed on %s", channel or "<unauthenticated>")
        try:
            await websocket.close(code=1011)
        except RuntimeError:
            pass
    finally:
        if listener_task:
            listener_task.cancel()
