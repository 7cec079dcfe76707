"""Pytest configuration and shared fixtures."""

import os
from typing import Any

import pytest

# Set test environment before importing settings
os.environ["ENV"] = "development"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FORMAT"] = "text"


@pytest.fixture
def sample_manifest() -> dict[str, Any]:
    """Sample MemberCluster manifest for testing."""
    return {
        "apiVersion": "core.federation.io/v1alpha1",
        "kind": "MemberCluster",
        "metadata": {
            "name": "member-1",
            "namespace": "kube-federation-system",
            "labels": {"team": "platform"},
        },
        "spec": {
            "apiEndpoint": "member-1.example.com:6443",
            "secretRef": {"name": "member-1-token"},
        },
    }


@pytest.fixture
def sample_status() -> dict[str, Any]:
    """Sample status as written by the reconciler."""
    return {
        "conditions": [
            {
                "type": "Ready",
                "status": "True",
                "lastProbeTime": "2024-01-01T12:00:30Z",
                "lastTransitionTime": "2024-01-01T12:00:00Z",
                "reason": "ClusterReady",
                "message": "/version responded with ok",
            }
        ],
        "zones": ["us-east1-a", "us-east1-b"],
        "region": "us-east1",
    }


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line(
        "markers", "integration: Integration tests (require external services)"
    )
    config.addinivalue_line("markers", "slow: Slow tests")
