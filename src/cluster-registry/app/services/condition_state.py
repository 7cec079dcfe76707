"""Ready condition state machine.

States are read from the Ready condition: Unknown (no condition yet),
Ready (True) and Offline (False).

    Current  Observation  Next     LastTransitionTime
    Unknown  healthy      Ready    set
    Unknown  failure      Offline  set
    Ready    healthy      Ready    kept
    Ready    failure      Offline  set
    Offline  healthy      Ready    set
    Offline  failure      Offline  kept

Reason and message always come from the latest observation and the probe
time always advances. With failure_threshold > 1 a Ready cluster keeps
its status until that many consecutive failures have been seen; the
counter is owned by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from shared.models import ClusterCondition, ClusterConditionType, ConditionStatus

from .endpoint_probe import ProbeOutcome, ProbeResult

REASON_CLUSTER_READY = "ClusterReady"
REASON_CLUSTER_NOT_REACHABLE = "ClusterNotReachable"
REASON_TIMEOUT = "Timeout"
REASON_UNAUTHORIZED = "Unauthorized"
REASON_CERTIFICATE_ERROR = "CertificateError"
REASON_CREDENTIAL_RESOLUTION_FAILED = "CredentialResolutionFailed"

OUTCOME_REASONS = {
    ProbeOutcome.SUCCESS: REASON_CLUSTER_READY,
    ProbeOutcome.UNREACHABLE: REASON_CLUSTER_NOT_REACHABLE,
    ProbeOutcome.TIMEOUT: REASON_TIMEOUT,
    ProbeOutcome.UNAUTHORIZED: REASON_UNAUTHORIZED,
    ProbeOutcome.CERTIFICATE_ERROR: REASON_CERTIFICATE_ERROR,
}


@dataclass(frozen=True)
class Observation:
    """What one reconciliation pass learned about a cluster."""

    healthy: bool
    reason: str
    message: str

    @classmethod
    def from_probe(cls, result: ProbeResult) -> Observation:
        return cls(
            healthy=result.succeeded,
            reason=OUTCOME_REASONS[result.outcome],
            message=result.message,
        )

    @classmethod
    def credential_failure(cls, error: Exception) -> Observation:
        return cls(
            healthy=False,
            reason=REASON_CREDENTIAL_RESOLUTION_FAILED,
            message=str(error) or type(error).__name__,
        )


class ConditionStateMachine:
    """Derives the next Ready condition from the current one and an observation."""

    def __init__(self, failure_threshold: int = 1):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.failure_threshold = failure_threshold

    def next_condition(
        self,
        current: ClusterCondition | None,
        observation: Observation,
        now: datetime,
        consecutive_failures: int = 1,
    ) -> ClusterCondition:
        """Compute the Ready condition after an observation.

        Args:
            current: Ready condition before this pass, None if never probed
            observation: Result of this pass
            now: Evaluation time (timezone-aware)
            consecutive_failures: Failures in a row including this one;
                ignored for healthy observations

        Returns:
            The new Ready condition
        """
        previous = current.status if current is not None else ConditionStatus.UNKNOWN

        if observation.healthy:
            status = ConditionStatus.TRUE
        elif previous == ConditionStatus.TRUE and consecutive_failures < self.failure_threshold:
            status = ConditionStatus.TRUE
        else:
            status = ConditionStatus.FALSE

        # Never let the probe time run backwards, even if the clock does
        probe_time = now
        if current is not None and current.last_probe_time and current.last_probe_time > now:
            probe_time = current.last_probe_time

        if current is None or status != previous or current.last_transition_time is None:
            transition_time = probe_time
        else:
            transition_time = current.last_transition_time

        return ClusterCondition(
            type=ClusterConditionType.READY,
            status=status,
            last_probe_time=probe_time,
            last_transition_time=transition_time,
            reason=observation.reason,
            message=observation.message,
        )
