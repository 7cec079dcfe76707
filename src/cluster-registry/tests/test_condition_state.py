"""Tests for the Ready condition state machine."""

from datetime import datetime, timedelta, timezone

import pytest

from app.errors import CredentialNotFound
from app.services.condition_state import (
    REASON_CLUSTER_NOT_REACHABLE,
    REASON_CLUSTER_READY,
    REASON_CREDENTIAL_RESOLUTION_FAILED,
    REASON_TIMEOUT,
    ConditionStateMachine,
    Observation,
)
from app.services.endpoint_probe import ProbeOutcome, ProbeResult
from shared.models import ClusterCondition, ClusterConditionType, ConditionStatus

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

HEALTHY = Observation(healthy=True, reason=REASON_CLUSTER_READY, message="/version responded with ok")
UNREACHABLE = Observation(healthy=False, reason=REASON_CLUSTER_NOT_REACHABLE, message="connection refused")


def _condition(status: ConditionStatus, at: datetime = T0, reason: str = "") -> ClusterCondition:
    return ClusterCondition(
        type=ClusterConditionType.READY,
        status=status,
        last_probe_time=at,
        last_transition_time=at,
        reason=reason,
    )


@pytest.fixture
def machine():
    return ConditionStateMachine()


class TestTransitions:
    @pytest.mark.parametrize(
        "current,observation,expected,transitions",
        [
            (None, HEALTHY, ConditionStatus.TRUE, True),
            (None, UNREACHABLE, ConditionStatus.FALSE, True),
            (ConditionStatus.TRUE, HEALTHY, ConditionStatus.TRUE, False),
            (ConditionStatus.TRUE, UNREACHABLE, ConditionStatus.FALSE, True),
            (ConditionStatus.FALSE, HEALTHY, ConditionStatus.TRUE, True),
            (ConditionStatus.FALSE, UNREACHABLE, ConditionStatus.FALSE, False),
            (ConditionStatus.UNKNOWN, HEALTHY, ConditionStatus.TRUE, True),
            (ConditionStatus.UNKNOWN, UNREACHABLE, ConditionStatus.FALSE, True),
        ],
    )
    def test_transition_table(self, machine, current, observation, expected, transitions):
        """Test every state/observation pair."""
        previous = _condition(current) if current is not None else None
        now = T0 + timedelta(seconds=30)

        condition = machine.next_condition(previous, observation, now)

        assert condition.type == ClusterConditionType.READY
        assert condition.status == expected
        assert condition.last_probe_time == now
        if transitions:
            assert condition.last_transition_time == now
        else:
            assert condition.last_transition_time == T0

    def test_reason_and_message_follow_latest_observation(self, machine):
        previous = _condition(ConditionStatus.FALSE, reason=REASON_CLUSTER_NOT_REACHABLE)
        timeout = Observation(healthy=False, reason=REASON_TIMEOUT, message="no response")

        condition = machine.next_condition(previous, timeout, T0 + timedelta(seconds=30))

        assert condition.status == ConditionStatus.FALSE
        assert condition.reason == REASON_TIMEOUT
        assert condition.message == "no response"
        assert condition.last_transition_time == T0

    def test_transition_time_unchanged_across_repeated_passes(self, machine):
        condition = machine.next_condition(None, HEALTHY, T0)
        for i in range(1, 5):
            condition = machine.next_condition(condition, HEALTHY, T0 + timedelta(seconds=30 * i))

        assert condition.last_transition_time == T0
        assert condition.last_probe_time == T0 + timedelta(seconds=120)

    def test_missing_transition_time_is_filled(self, machine):
        previous = ClusterCondition(type=ClusterConditionType.READY, status=ConditionStatus.TRUE)

        condition = machine.next_condition(previous, HEALTHY, T0)

        assert condition.last_transition_time == T0


class TestProbeTime:
    def test_probe_time_never_goes_backwards(self, machine):
        """Test a clock stepping back does not rewind the probe time."""
        previous = _condition(ConditionStatus.TRUE, at=T0)

        condition = machine.next_condition(previous, HEALTHY, T0 - timedelta(minutes=5))

        assert condition.last_probe_time == T0
        assert condition.last_transition_time == T0

    def test_transition_time_not_after_probe_time(self, machine):
        previous = _condition(ConditionStatus.TRUE, at=T0)

        condition = machine.next_condition(previous, UNREACHABLE, T0 - timedelta(minutes=5))

        assert condition.last_transition_time <= condition.last_probe_time


class TestFailureThreshold:
    def test_default_threshold_flips_on_first_failure(self, machine):
        previous = _condition(ConditionStatus.TRUE)

        condition = machine.next_condition(previous, UNREACHABLE, T0, consecutive_failures=1)

        assert condition.status == ConditionStatus.FALSE

    def test_ready_held_until_threshold(self):
        machine = ConditionStateMachine(failure_threshold=3)
        condition = _condition(ConditionStatus.TRUE)

        for failures in (1, 2):
            condition = machine.next_condition(
                condition, UNREACHABLE, T0 + timedelta(seconds=failures), consecutive_failures=failures
            )
            assert condition.status == ConditionStatus.TRUE
            assert condition.reason == REASON_CLUSTER_NOT_REACHABLE
            assert condition.last_transition_time == T0

        condition = machine.next_condition(
            condition, UNREACHABLE, T0 + timedelta(seconds=3), consecutive_failures=3
        )
        assert condition.status == ConditionStatus.FALSE
        assert condition.last_transition_time == T0 + timedelta(seconds=3)

    def test_threshold_does_not_delay_first_observation(self):
        machine = ConditionStateMachine(failure_threshold=3)

        condition = machine.next_condition(None, UNREACHABLE, T0, consecutive_failures=1)

        assert condition.status == ConditionStatus.FALSE

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            ConditionStateMachine(failure_threshold=0)


class TestObservation:
    @pytest.mark.parametrize(
        "outcome,reason",
        [
            (ProbeOutcome.SUCCESS, "ClusterReady"),
            (ProbeOutcome.UNREACHABLE, "ClusterNotReachable"),
            (ProbeOutcome.TIMEOUT, "Timeout"),
            (ProbeOutcome.UNAUTHORIZED, "Unauthorized"),
            (ProbeOutcome.CERTIFICATE_ERROR, "CertificateError"),
        ],
    )
    def test_from_probe(self, outcome, reason):
        observation = Observation.from_probe(ProbeResult(outcome=outcome, message="detail"))

        assert observation.reason == reason
        assert observation.healthy == (outcome == ProbeOutcome.SUCCESS)
        assert observation.message == "detail"

    def test_credential_failure(self):
        observation = Observation.credential_failure(CredentialNotFound("ns", "member-1-token"))

        assert not observation.healthy
        assert observation.reason == REASON_CREDENTIAL_RESOLUTION_FAILED
        assert "member-1-token" in observation.message
