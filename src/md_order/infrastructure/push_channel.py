# src/md_order/infrastructure/push_channel.py
"""Redis pub/sub push channel.

A subscription is an async iterator of OrderEvent for one topic. It
reconnects on its own after a dropped connection (fixed delay, no cap) and
skips messages it cannot decode; the publisher guarantees neither order nor
uniqueness, so consumers must merge idempotently.
"""
import asyncio
import logging
from collections.abc import AsyncIterator

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from config.settings import settings
from src.md_common.redis_client import get_redis
from src.md_order.application.schemas import PushMessage
from src.md_order.domain.events import OrderEvent

logger = logging.getLogger(__name__)

_POLL_TIMEOUT_SECONDS = 1.0


def decode_message(raw: str | bytes) -> OrderEvent | None:
    """Parse one published payload; None for anything that is not a valid order event."""
    try:
        return PushMessage.model_validate_json(raw).to_event()
    except (ValidationError, ValueError):
        logger.warning("Dropping undecodable push message: %r", raw[:200])
        return None


class RedisPushSubscription:
    def __init__(self, redis: aioredis.Redis, topic: str, reconnect_delay: float) -> None:
        self._redis = redis
        self._topic = topic
        self._reconnect_delay = reconnect_delay
        self._pubsub: PubSub | None = None
        self._closed = False

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> bool:
        """Open the pub/sub connection; False (and retry later) when redis is unreachable."""
        pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(self._topic)
        except RedisError:
            logger.warning("Push subscribe failed: topic=%s", self._topic, exc_info=True)
            await pubsub.aclose()
            return False
        self._pubsub = pubsub
        return True

    def __aiter__(self) -> AsyncIterator[OrderEvent]:
        return self._events()

    async def _events(self) -> AsyncIterator[OrderEvent]:
        while not self._closed:
            if self._pubsub is None and not await self.connect():
                await asyncio.sleep(self._reconnect_delay)
                continue
            assert self._pubsub is not None
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=_POLL_TIMEOUT_SECONDS
                )
            except RedisError:
                logger.warning("Push channel dropped, reconnecting: topic=%s", self._topic)
                await self._release()
                await asyncio.sleep(self._reconnect_delay)
                continue
            if message is None or message.get("type") != "message":
                continue
            event = decode_message(message["data"])
            if event is not None:
                yield event

    async def close(self) -> None:
        self._closed = True
        await self._release()

    async def _release(self) -> None:
        pubsub, self._pubsub = self._pubsub, None
        if pubsub is None:
            return
        try:
            await pubsub.unsubscribe(self._topic)
        except RedisError:
            logger.debug("Unsubscribe failed on a dead connection: topic=%s", self._topic)
        finally:
            await pubsub.aclose()


class RedisPushChannel:
    """Concrete implementation of PushChannelProtocol over redis pub/sub."""

    def __init__(
        self,
        redis: aioredis.Redis | None = None,
        reconnect_delay: float | None = None,
    ) -> None:
        self._redis = redis
        self._reconnect_delay = (
            reconnect_delay
            if reconnect_delay is not None
            else settings.PUSH_RECONNECT_DELAY_SECONDS
        )

    async def subscribe(self, topic: str) -> RedisPushSubscription:
        redis = self._redis or await get_redis()
        subscription = RedisPushSubscription(redis, topic, self._reconnect_delay)
        await subscription.connect()
        return subscription
