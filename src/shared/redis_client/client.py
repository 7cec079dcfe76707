"""Redis client wrapper.

Redis Database Layout:
- DB 0: PubSub, Events (fedcluster:events:*)
"""

from enum import IntEnum
from typing import Any

import redis.asyncio as redis

from shared.models import Event

CHANNEL_PREFIX = "fedcluster:events"


class RedisDB(IntEnum):
    """Redis database numbers."""

    PUBSUB = 0


class RedisClient:
    """Async Redis client with connection pooling."""

    def __init__(self, url: str = "redis://localhost:6379"):
        """Initialize Redis client.

        Args:
            url: Redis connection URL
        """
        self._url = url
        self._pools: dict[int, redis.ConnectionPool] = {}
        self._clients: dict[int, redis.Redis] = {}

    async def connect(self) -> None:
        """Initialize connection pools for all databases."""
        for db in RedisDB:
            pool = redis.ConnectionPool.from_url(
                self._url,
                db=db.value,
                decode_responses=True,
            )
            self._pools[db] = pool
            self._clients[db] = redis.Redis(connection_pool=pool)

    async def close(self) -> None:
        """Close all connections."""
        for client in self._clients.values():
            await client.aclose()
        for pool in self._pools.values():
            await pool.disconnect()
        self._clients.clear()
        self._pools.clear()

    def get_client(self, db: RedisDB) -> redis.Redis:
        """Get Redis client for specific database."""
        if db not in self._clients:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._clients[db]

    @staticmethod
    def channels_for(event: Event) -> list[str]:
        """Channels an event is published on.

        Channel: fedcluster:events:{type}:{optional-cluster}
        """
        # use_enum_values=True stores the plain string
        event_type_str = (
            event.event_type.value if hasattr(event.event_type, "value") else event.event_type
        )
        channels = [
            f"{CHANNEL_PREFIX}:all",
            f"{CHANNEL_PREFIX}:{event_type_str.lower().split('_')[0]}",
        ]
        if event.cluster:
            channels.append(f"{CHANNEL_PREFIX}:cluster:{event.cluster}")
        return channels

    async def publish_event(self, event: Event) -> int:
        """Publish event to Redis PubSub.

        Args:
            event: Event to publish

        Returns:
            Number of subscribers that received the message on the main channel
        """
        client = self.get_client(RedisDB.PUBSUB)
        message = event.model_dump_json(by_alias=True)

        main_channel, *other_channels = self.channels_for(event)
        receivers = await client.publish(main_channel, message)
        for channel in other_channels:
            await client.publish(channel, message)

        return receivers

    async def health_check(self) -> dict[str, Any]:
        """Ping Redis and report status."""
        try:
            client = self.get_client(RedisDB.PUBSUB)
            await client.ping()
            return {"status": "healthy"}
        except (RuntimeError, redis.RedisError) as e:
            return {"status": "unhealthy", "error": str(e)}
