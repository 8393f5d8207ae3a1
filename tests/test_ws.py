import asyncio
import logging

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from stylesquare.core.config import settings
from stylesquare.services.ws import log_listener_failure
from stylesquare.websockets.notifications import WS_REALTIME_DISABLED


def test_socket_is_closed_when_realtime_is_off(monkeypatch) -> None:
    from stylesquare.main import app

    monkeypatch.setattr(settings, "realtime_enabled", False)
    client = TestClient(app)
    with client.websocket_connect("/ws/notifications") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_text()
    assert exc_info.value.code == WS_REALTIME_DISABLED


async def test_relay_failure_is_logged(caplog) -> None:
    async def broken_relay() -> None:
        raise ConnectionError("redis down")

    with caplog.at_level(logging.ERROR, logger="stylesquare.services.ws"):
        task = asyncio.create_task(broken_relay(), name="relay:notif:u1")
        task.add_done_callback(log_listener_failure)
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)
    assert "relay:notif:u1 stopped" in caplog.text
    assert "redis down" in caplog.text


async def test_cancelled_relay_is_not_an_error(caplog) -> None:
    task = asyncio.create_task(asyncio.sleep(10), name="relay:notif:u2")
    task.add_done_callback(log_listener_failure)
    await asyncio.sleep(0)
    task.cancel()

    with caplog.at_level(logging.ERROR, logger="stylesquare.services.ws"):
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)
    assert "relay:notif:u2" not in caplog.text
