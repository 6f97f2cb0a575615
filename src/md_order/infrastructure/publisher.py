"""Redis publisher for order push events.

Each committed insert/update goes out on both party topics of the order.
"""
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.md_common.redis_client import client_topic, dealer_topic, get_redis
from src.md_order.application.schemas import PushMessage
from src.md_order.domain.events import OrderEvent

logger = logging.getLogger(__name__)


class RedisOrderPublisher:
    def __init__(self, redis: aioredis.Redis | None = None) -> None:
        self._redis = redis

    async def publish(self, event: OrderEvent) -> None:
        redis = self._redis or await get_redis()
        payload = PushMessage.from_event(event).model_dump_json()
        order = event.order
        for topic in (dealer_topic(order.dealer_id), client_topic(order.client_id)):
            try:
                await redis.publish(topic, payload)
            except RedisError:
                # The write is already committed; subscribers catch up on their next fetch.
                logger.warning(
                    "Push publish failed: topic=%s order=%s type=%s",
                    topic,
                    order.id,
                    event.type.value,
                    exc_info=True,
                )
