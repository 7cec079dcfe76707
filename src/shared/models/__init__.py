"""Shared data models for the federation cluster registry.

All models follow these conventions:
- Timestamps: ISO 8601 format with timezone (UTC)
- Field names: snake_case in Python, camelCase on the wire
- Enums: string values
"""

# Base
from .base import FederationBaseModel

# Member cluster domain
from .cluster import (
    DNS_NAME_PATTERN,
    GROUP_VERSION,
    MEMBER_CLUSTER_KIND,
    MEMBER_CLUSTER_LIST_KIND,
    ClusterCondition,
    ClusterConditionType,
    ClusterCredentials,
    ClusterState,
    ConditionStatus,
    MemberCluster,
    MemberClusterList,
    MemberClusterSpec,
    MemberClusterStatus,
    ObjectMeta,
    SecretReference,
)

# Event models
from .events import Event, EventType

# Resource scheme
from .scheme import Scheme, UnknownKindError, build_scheme

__all__ = [
    # Base
    "FederationBaseModel",
    # Member cluster
    "DNS_NAME_PATTERN",
    "GROUP_VERSION",
    "MEMBER_CLUSTER_KIND",
    "MEMBER_CLUSTER_LIST_KIND",
    "ClusterCondition",
    "ClusterConditionType",
    "ClusterCredentials",
    "ClusterState",
    "ConditionStatus",
    "MemberCluster",
    "MemberClusterList",
    "MemberClusterSpec",
    "MemberClusterStatus",
    "ObjectMeta",
    "SecretReference",
    # Events
    "Event",
    "EventType",
    # Scheme
    "Scheme",
    "UnknownKindError",
    "build_scheme",
]
