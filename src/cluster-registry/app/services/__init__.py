"""Business logic services."""

from .cluster_service import ClusterService
from .condition_state import ConditionStateMachine, Observation
from .credential_resolver import CredentialResolver
from .endpoint_probe import EndpointProbe, ProbeOutcome, ProbeResult
from .event_service import EventService
from .metadata_sync import ClusterMetadata, MetadataSync, derive_metadata
from .reconciler import ClusterReconciler, ClusterWorker

__all__ = [
    "ClusterMetadata",
    "ClusterReconciler",
    "ClusterService",
    "ClusterWorker",
    "ConditionStateMachine",
    "CredentialResolver",
    "EndpointProbe",
    "EventService",
    "MetadataSync",
    "Observation",
    "ProbeOutcome",
    "ProbeResult",
    "derive_metadata",
]
