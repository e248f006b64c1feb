"""Best-effort lifecycle notifier.

Events are emitted only after the owning transaction has committed. Delivery
is at-most-once and unacknowledged: a publisher failure is logged and dropped,
never raised back into the lifecycle operation.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

import redis.asyncio as aioredis

from src.sa_realtime.events import LifecycleEvent

logger = logging.getLogger(__name__)


class EventPublisherProtocol(Protocol):
    async def publish(self, event: LifecycleEvent) -> None: ...


class RedisEventPublisher:
    """PUBLISH the JSON-encoded event on a Redis channel."""

    def __init__(
        self,
        redis_getter: Callable[[], Awaitable[aioredis.Redis]],
        channel: str,
    ) -> None:
        self._redis_getter = redis_getter
        self._channel = channel

    async def publish(self, event: LifecycleEvent) -> None:
        redis = await self._redis_getter()
        await redis.publish(self._channel, event.model_dump_json())


class LifecycleNotifier:
    def __init__(self, publisher: EventPublisherProtocol | None = None) -> None:
        self._publisher = publisher

    async def emit(self, event: LifecycleEvent) -> None:
        if self._publisher is None:
            return
        try:
            await self._publisher.publish(event)
        except Exception:
            logger.warning("Dropped %s event", event.type, exc_info=True)
