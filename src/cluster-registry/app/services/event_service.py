"""Event service for Redis pub/sub."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from shared.models.events import Event, EventType
from shared.observability import get_logger
from shared.redis_client import RedisClient

logger = get_logger(__name__)


class EventService:
    """Service for publishing registry events to Redis.

    Events emitted:
    - CLUSTER_REGISTERED
    - CLUSTER_DELETED
    - CLUSTER_STATUS_CHANGED
    """

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    async def publish(
        self, event_type: EventType, payload: dict[str, Any], cluster: str | None = None
    ) -> None:
        """Publish an event to Redis."""
        event = Event(
            event_id=uuid4(),
            event_type=event_type,
            cluster=cluster,
            timestamp=datetime.now(timezone.utc),
            payload=payload,
        )

        await self.redis.publish_event(event)
        logger.debug("Event published", event_type=event_type.value, cluster=cluster)

    async def publish_cluster_registered(self, name: str, api_endpoint: str) -> None:
        """Publish CLUSTER_REGISTERED event."""
        payload = {"name": name, "api_endpoint": api_endpoint}
        await self.publish(EventType.CLUSTER_REGISTERED, payload, name)

    async def publish_cluster_deleted(self, name: str) -> None:
        """Publish CLUSTER_DELETED event."""
        await self.publish(EventType.CLUSTER_DELETED, {"name": name}, name)

    async def publish_cluster_status_changed(
        self,
        name: str,
        old_state: str,
        new_state: str,
        reason: str,
    ) -> None:
        """Publish CLUSTER_STATUS_CHANGED event."""
        payload = {
            "name": name,
            "old_state": old_state,
            "new_state": new_state,
            "reason": reason,
        }
        await self.publish(EventType.CLUSTER_STATUS_CHANGED, payload, name)
