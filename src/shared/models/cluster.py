"""Member cluster domain models.

A MemberCluster is the registration of one remote cluster with the
federation control plane. The `spec` section is written by operators, the
status half only by the reconciler.
"""

import base64
import binascii
import re
from datetime import datetime
from enum import Enum

from pydantic import Field, field_serializer, field_validator

from .base import FederationBaseModel

GROUP_VERSION = "core.federation.io/v1alpha1"
MEMBER_CLUSTER_KIND = "MemberCluster"
MEMBER_CLUSTER_LIST_KIND = "MemberClusterList"

DNS_NAME_PATTERN = r"^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$"


class ClusterConditionType(str, Enum):
    """Condition types published on a member cluster."""

    READY = "Ready"
    OFFLINE = "Offline"


class ConditionStatus(str, Enum):
    """Tri-state condition status."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ClusterState(str, Enum):
    """Health state derived from the Ready condition."""

    UNKNOWN = "Unknown"
    READY = "Ready"
    OFFLINE = "Offline"


class ClusterCondition(FederationBaseModel):
    """Current state of one aspect of a cluster."""

    type: ClusterConditionType
    status: ConditionStatus
    last_probe_time: datetime | None = Field(
        default=None, description="Last time the condition was checked"
    )
    last_transition_time: datetime | None = Field(
        default=None, description="Last time the status changed value"
    )
    reason: str = Field(default="", description="Machine-readable cause")
    message: str = Field(default="", description="Human-readable detail")


class SecretReference(FederationBaseModel):
    """Reference to a secret in the control plane namespace."""

    name: str = Field(min_length=1)


class ObjectMeta(FederationBaseModel):
    """Identity of a registration."""

    name: str = Field(
        min_length=3,
        max_length=63,
        pattern=DNS_NAME_PATTERN,
        description="DNS-compatible cluster name",
    )
    namespace: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    creation_timestamp: datetime | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not re.match(DNS_NAME_PATTERN, v):
            raise ValueError("Name must be DNS-compatible (lowercase alphanumeric with hyphens)")
        return v


class MemberClusterSpec(FederationBaseModel):
    """Connection details supplied by the operator."""

    api_endpoint: str = Field(
        min_length=1,
        description="API endpoint of the member cluster: hostname, hostname:port, IP or URL",
    )
    ca_bundle: bytes | None = Field(
        default=None,
        description="PEM trust anchor for the endpoint; base64 when serialized",
    )
    secret_ref: SecretReference

    @field_validator("api_endpoint")
    @classmethod
    def validate_api_endpoint(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("apiEndpoint must not be empty")
        return v

    @field_validator("ca_bundle", mode="before")
    @classmethod
    def decode_ca_bundle(cls, v: object) -> object:
        """Accept raw bytes, or base64 text as found in manifests."""
        if isinstance(v, str):
            if not v:
                return None
            try:
                return base64.b64decode(v, validate=True)
            except binascii.Error as e:
                raise ValueError(f"caBundle is not valid base64: {e}") from e
        return v

    @field_serializer("ca_bundle", when_used="json")
    def encode_ca_bundle(self, v: bytes | None) -> str | None:
        if v is None:
            return None
        return base64.b64encode(v).decode()


class MemberClusterStatus(FederationBaseModel):
    """Status maintained by the reconciler.

    Conditions are unique by type; set_condition replaces in place.
    """

    conditions: list[ClusterCondition] = Field(default_factory=list)
    zones: list[str] = Field(
        default_factory=list,
        description="Availability zones of the cluster nodes, e.g. 'us-east1-a'",
    )
    region: str = Field(default="", description="Region of the cluster nodes, e.g. 'us-east1'")

    @field_validator("conditions")
    @classmethod
    def dedupe_conditions(cls, v: list[ClusterCondition]) -> list[ClusterCondition]:
        """Collapse duplicate types, keeping the last entry at the first position."""
        by_type: dict[str, ClusterCondition] = {}
        for condition in v:
            by_type[condition.type] = condition
        return list(by_type.values())

    def get_condition(self, condition_type: ClusterConditionType) -> ClusterCondition | None:
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None

    def set_condition(self, condition: ClusterCondition) -> None:
        for i, existing in enumerate(self.conditions):
            if existing.type == condition.type:
                self.conditions[i] = condition
                return
        self.conditions.append(condition)

    @property
    def state(self) -> ClusterState:
        """Health state as seen through the Ready condition."""
        ready = self.get_condition(ClusterConditionType.READY)
        if ready is None or ready.status == ConditionStatus.UNKNOWN:
            return ClusterState.UNKNOWN
        if ready.status == ConditionStatus.TRUE:
            return ClusterState.READY
        return ClusterState.OFFLINE


class MemberCluster(FederationBaseModel):
    """Registration of a member cluster with the federation control plane."""

    api_version: str = GROUP_VERSION
    kind: str = MEMBER_CLUSTER_KIND
    metadata: ObjectMeta
    spec: MemberClusterSpec
    status: MemberClusterStatus = Field(default_factory=MemberClusterStatus)

    @property
    def name(self) -> str:
        return self.metadata.name


class MemberClusterList(FederationBaseModel):
    """List of member cluster registrations."""

    api_version: str = GROUP_VERSION
    kind: str = MEMBER_CLUSTER_LIST_KIND
    items: list[MemberCluster] = Field(default_factory=list)


class ClusterCredentials(FederationBaseModel):
    """Connection credentials for a member cluster (never returned via API)."""

    token: str = Field(min_length=1, description="Bearer token for API access")
    ca_bundle: bytes | None = Field(default=None, description="PEM trust anchor")
