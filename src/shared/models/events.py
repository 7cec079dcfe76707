"""Event models for registry notifications."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import Field

from .base import FederationBaseModel


class EventType(str, Enum):
    """Event types emitted by the cluster registry."""

    CLUSTER_REGISTERED = "CLUSTER_REGISTERED"
    CLUSTER_DELETED = "CLUSTER_DELETED"
    CLUSTER_STATUS_CHANGED = "CLUSTER_STATUS_CHANGED"


class Event(FederationBaseModel):
    """Registry event.

    Note: Events are ephemeral (not persisted, streamed only)
    """

    event_id: UUID
    event_type: EventType
    cluster: str | None = Field(default=None, description="Member cluster name")
    timestamp: datetime
    payload: dict[str, Any] = Field(
        default_factory=dict, description="Event-specific payload"
    )
