"""Unit tests for structured logging helpers."""

import structlog
from structlog.testing import capture_logs

from shared.config import ClusterRegistrySettings
from shared.observability import (
    cluster_log_context,
    get_logger,
    log_external_call_end,
    setup_logging,
)


def test_setup_logging_accepts_settings():
    setup_logging(ClusterRegistrySettings(log_format="json"), service_name="cluster-registry")
    setup_logging(ClusterRegistrySettings(log_format="text"))

    assert structlog.is_configured()


def test_cluster_context_is_bound_and_released():
    with cluster_log_context("member-1", shard="0"):
        bound = structlog.contextvars.get_contextvars()

    assert bound["cluster"] == "member-1"
    assert bound["shard"] == "0"
    assert "cluster" not in structlog.contextvars.get_contextvars()


def test_failed_external_call_is_a_warning():
    with capture_logs() as logs:
        log_external_call_end(
            get_logger("test"), "member-cluster", "/version", success=False, duration_ms=12.345, error="boom"
        )

    assert logs[0]["log_level"] == "warning"
    assert logs[0]["duration_ms"] == 12.35
    assert logs[0]["error"] == "boom"
