"""Member cluster endpoint probe.

A probe is one authenticated GET /version against the member cluster's
API server, bounded by a hard deadline. It never raises for network,
TLS or authentication faults; those come back as outcomes.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum

import httpx
from pydantic import BaseModel

from shared.config import DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS
from shared.models import ClusterCredentials
from shared.observability import get_logger, log_external_call_end, log_external_call_start

from .cluster_client import InvalidCABundle, is_certificate_error, open_cluster_client

logger = get_logger(__name__)

VERSION_PATH = "/version"


class ProbeOutcome(str, Enum):
    """Result of a single endpoint probe."""

    SUCCESS = "Success"
    UNREACHABLE = "Unreachable"
    TIMEOUT = "Timeout"
    UNAUTHORIZED = "Unauthorized"
    CERTIFICATE_ERROR = "CertificateError"


class ProbeResult(BaseModel):
    """Result of probing a member cluster."""

    outcome: ProbeOutcome
    message: str
    api_version: str | None = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.outcome == ProbeOutcome.SUCCESS


class EndpointProbe:
    """Checks that a member cluster API server is reachable and accepts the token."""

    def __init__(
        self,
        timeout: float = DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def probe(
        self,
        api_endpoint: str,
        credentials: ClusterCredentials,
        timeout: float | None = None,
    ) -> ProbeResult:
        """Probe a member cluster API endpoint.

        Args:
            api_endpoint: host[:port] or URL of the API server
            credentials: Bearer token and optional trust anchor
            timeout: Override of the hard deadline in seconds

        Returns:
            ProbeResult; the call completes within the deadline plus scheduling overhead
        """
        deadline = timeout or self.timeout
        started = time.monotonic()
        log_external_call_start(logger, "member-cluster", VERSION_PATH)

        try:
            result = await asyncio.wait_for(
                self._check_version(api_endpoint, credentials, deadline),
                timeout=deadline,
            )

        except (asyncio.TimeoutError, httpx.TimeoutException):
            result = ProbeResult(
                outcome=ProbeOutcome.TIMEOUT,
                message=f"No response from {api_endpoint} within {deadline:g}s",
            )

        except InvalidCABundle as e:
            result = ProbeResult(outcome=ProbeOutcome.CERTIFICATE_ERROR, message=str(e))

        except httpx.TransportError as e:
            if is_certificate_error(e):
                result = ProbeResult(
                    outcome=ProbeOutcome.CERTIFICATE_ERROR,
                    message=f"TLS verification failed: {e!s}",
                )
            else:
                result = ProbeResult(
                    outcome=ProbeOutcome.UNREACHABLE,
                    message=f"Cannot connect to cluster: {e!s}",
                )

        except Exception as e:
            logger.error("Probe error", api_endpoint=api_endpoint, error=str(e))
            result = ProbeResult(
                outcome=ProbeOutcome.UNREACHABLE,
                message=f"Probe failed: {e!s}",
            )

        result.duration_ms = (time.monotonic() - started) * 1000
        log_external_call_end(
            logger,
            "member-cluster",
            VERSION_PATH,
            success=result.succeeded,
            duration_ms=result.duration_ms,
            error=None if result.succeeded else f"{result.outcome.value}: {result.message}",
        )
        return result

    async def _check_version(
        self,
        api_endpoint: str,
        credentials: ClusterCredentials,
        timeout: float,
    ) -> ProbeResult:
        """Call the version endpoint and classify the response."""
        async with open_cluster_client(
            api_endpoint, credentials, timeout, transport=self._transport
        ) as client:
            response = await client.get(VERSION_PATH)

        if response.status_code == 200:
            try:
                git_version = response.json().get("gitVersion", "unknown")
            except (ValueError, AttributeError):
                git_version = "unknown"
            return ProbeResult(
                outcome=ProbeOutcome.SUCCESS,
                message=f"{VERSION_PATH} responded with ok",
                api_version=git_version,
            )

        if response.status_code in (401, 403):
            return ProbeResult(
                outcome=ProbeOutcome.UNAUTHORIZED,
                message=f"Credentials rejected with status {response.status_code}",
            )

        return ProbeResult(
            outcome=ProbeOutcome.UNREACHABLE,
            message=f"Unexpected status code from {VERSION_PATH}: {response.status_code}",
        )
