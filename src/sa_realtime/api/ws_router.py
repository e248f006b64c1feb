"""WebSocket fan-out of lifecycle events.

Each connection gets a `snapshot` message first, then every message published
on the events channel until the client goes away. Nothing is replayed: events
published before the connection was accepted are not delivered.
"""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from redis.asyncio.client import PubSub

from config.settings import settings
from src.sa_common.datetime_utils import utc_now
from src.sa_common.redis_client import get_redis
from src.sa_realtime.events import snapshot

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)


async def _relay(pubsub: PubSub, websocket: WebSocket) -> None:
    async for message in pubsub.listen():
        if message.get("type") != "message":
            continue
        await websocket.send_text(message["data"])


@router.websocket("/ws/events")
async def lifecycle_events(websocket: WebSocket) -> None:
    await websocket.accept()
    await websocket.send_text(snapshot(utc_now()).model_dump_json())

    redis = await get_redis()
    pubsub = redis.pubsub()
    await pubsub.subscribe(settings.EVENTS_CHANNEL)
    relay = asyncio.create_task(_relay(pubsub, websocket))
    logger.info("Event stream opened for %s", websocket.client)
    try:
        # Inbound frames are ignored; receive only to notice the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        relay.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await relay
        await pubsub.unsubscribe(settings.EVENTS_CHANNEL)
        await pubsub.aclose()
        logger.info("Event stream closed for %s", websocket.client)
