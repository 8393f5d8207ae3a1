from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket
from redis.asyncio.client import PubSub

from stylesquare.db.redis import redis_client

logger = logging.getLogger(__name__)


class NotificationFanout:
    """Relays Redis pub/sub messages on one channel to one websocket."""

    def __init__(self, poll_interval: float = 0.02) -> None:
        self.poll_interval = poll_interval

    async def subscribe_loop(self, channel: str, ws: WebSocket) -> None:
        pubsub: PubSub = redis_client.pubsub()
        await pubsub.subscribe(channel)
        logger.info("Subscribed websocket to %s", channel)
        try:
            while True:
                msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if msg and msg.get("data"):
                    await ws.send_text(str(msg["data"]))
                await asyncio.sleep(self.poll_interval)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()


def log_listener_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Notification relay %s stopped", task.get_name(), exc_info=exc)


fanout = NotificationFanout()
