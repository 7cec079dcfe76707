"""Unit tests for the Redis event publisher."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import redis.asyncio as redis

from shared.models import Event, EventType
from shared.redis_client import RedisClient, RedisDB


def _event(cluster: str | None = "member-1") -> Event:
    return Event(
        event_id=uuid4(),
        event_type=EventType.CLUSTER_STATUS_CHANGED,
        cluster=cluster,
        timestamp=datetime.now(timezone.utc),
        payload={"old_state": "Ready", "new_state": "Offline"},
    )


@pytest.fixture
def connected_client():
    client = RedisClient("redis://localhost:6379")
    pubsub = MagicMock()
    pubsub.publish = AsyncMock(return_value=2)
    pubsub.ping = AsyncMock(return_value=True)
    client._clients[RedisDB.PUBSUB] = pubsub
    return client, pubsub


@pytest.mark.unit
class TestChannels:
    def test_cluster_event_channels(self):
        assert RedisClient.channels_for(_event()) == [
            "fedcluster:events:all",
            "fedcluster:events:cluster",
            "fedcluster:events:cluster:member-1",
        ]

    def test_event_without_cluster(self):
        assert RedisClient.channels_for(_event(cluster=None)) == [
            "fedcluster:events:all",
            "fedcluster:events:cluster",
        ]


@pytest.mark.unit
class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_event(self, connected_client):
        client, pubsub = connected_client

        receivers = await client.publish_event(_event())

        assert receivers == 2
        assert pubsub.publish.await_count == 3
        channel, message = pubsub.publish.await_args_list[0].args
        assert channel == "fedcluster:events:all"
        data = json.loads(message)
        assert data["eventType"] == "CLUSTER_STATUS_CHANGED"
        assert data["cluster"] == "member-1"

    @pytest.mark.asyncio
    async def test_publish_requires_connection(self):
        with pytest.raises(RuntimeError):
            await RedisClient().publish_event(_event())


@pytest.mark.unit
class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self, connected_client):
        client, _ = connected_client
        assert await client.health_check() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_not_connected(self):
        result = await RedisClient().health_check()
        assert result["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_ping_failure(self, connected_client):
        client, pubsub = connected_client
        pubsub.ping.side_effect = redis.ConnectionError("refused")

        result = await client.health_check()

        assert result == {"status": "unhealthy", "error": "refused"}
