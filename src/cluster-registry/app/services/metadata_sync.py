"""Member cluster metadata sync.

Reads the node inventory of a reachable member cluster and derives the
zones and the region it runs in from the standard topology labels.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from typing import Any

import httpx
from pydantic import BaseModel, Field

from shared.config import DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS
from shared.models import ClusterCredentials
from shared.observability import get_logger, log_external_call_end

from ..errors import MetadataQueryFailed
from .cluster_client import InvalidCABundle, open_cluster_client

logger = get_logger(__name__)

NODES_PATH = "/api/v1/nodes"
NODE_PAGE_SIZE = 500
MAX_NODE_PAGES = 100

ZONE_LABELS = (
    "topology.kubernetes.io/zone",
    "failure-domain.beta.kubernetes.io/zone",
)
REGION_LABELS = (
    "topology.kubernetes.io/region",
    "failure-domain.beta.kubernetes.io/region",
)


class ClusterMetadata(BaseModel):
    """Zones and region observed on a member cluster's nodes."""

    zones: list[str] = Field(default_factory=list)
    region: str = ""


def _first_label(labels: dict[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = labels.get(key)
        if value and isinstance(value, str):
            return value
    return None


def derive_metadata(nodes: list[dict[str, Any]]) -> ClusterMetadata:
    """Derive zones and region from node objects.

    Zones are the sorted distinct zone labels. The region is the most
    common region label, ties broken alphabetically; empty if no node
    carries one.
    """
    zones: set[str] = set()
    regions: Counter[str] = Counter()

    for node in nodes:
        metadata = node.get("metadata") if isinstance(node, dict) else None
        if not isinstance(metadata, dict):
            continue
        labels = metadata.get("labels") or {}
        if not isinstance(labels, dict):
            continue
        zone = _first_label(labels, ZONE_LABELS)
        if zone:
            zones.add(zone)
        region = _first_label(labels, REGION_LABELS)
        if region:
            regions[region] += 1

    region = ""
    if regions:
        region = min(regions.items(), key=lambda item: (-item[1], item[0]))[0]

    return ClusterMetadata(zones=sorted(zones), region=region)


class MetadataSync:
    """Refreshes zone/region inventory for reachable clusters."""

    def __init__(
        self,
        timeout: float = DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def sync(
        self,
        api_endpoint: str,
        credentials: ClusterCredentials,
    ) -> ClusterMetadata:
        """Read node inventory and derive cluster metadata.

        Raises:
            MetadataQueryFailed: the node list could not be read
        """
        started = time.monotonic()
        try:
            nodes = await asyncio.wait_for(
                self._list_nodes(api_endpoint, credentials),
                timeout=self.timeout,
            )
            metadata = derive_metadata(nodes)
        except asyncio.TimeoutError as e:
            raise self._failed(started, f"no complete node list within {self.timeout:g}s") from e
        except (httpx.HTTPError, InvalidCABundle, ValueError, TypeError, AttributeError) as e:
            raise self._failed(started, str(e)) from e

        log_external_call_end(
            logger,
            "member-cluster",
            NODES_PATH,
            success=True,
            duration_ms=(time.monotonic() - started) * 1000,
        )
        return metadata

    async def _list_nodes(
        self,
        api_endpoint: str,
        credentials: ClusterCredentials,
    ) -> list[dict[str, Any]]:
        """List all nodes, following continue tokens.

        Raises:
            ValueError: the body is not a node list, or pagination does not converge
        """
        nodes: list[dict[str, Any]] = []
        params: dict[str, Any] = {"limit": NODE_PAGE_SIZE}
        seen_tokens: set[str] = set()

        async with open_cluster_client(
            api_endpoint, credentials, self.timeout, transport=self._transport
        ) as client:
            for _ in range(MAX_NODE_PAGES):
                response = await client.get(NODES_PATH, params=params)
                response.raise_for_status()
                body = response.json()
                if not isinstance(body, dict):
                    raise ValueError(f"Expected a NodeList object, got {type(body).__name__}")

                items = body.get("items") or []
                if not isinstance(items, list):
                    raise ValueError("NodeList items is not a list")
                nodes.extend(items)

                continue_token = (body.get("metadata") or {}).get("continue")
                if not continue_token:
                    return nodes
                if continue_token in seen_tokens:
                    raise ValueError(f"Continue token {continue_token!r} repeated")
                seen_tokens.add(continue_token)
                params = {"limit": NODE_PAGE_SIZE, "continue": continue_token}

        raise ValueError(f"Node list exceeded {MAX_NODE_PAGES} pages")

    def _failed(self, started: float, error: str) -> MetadataQueryFailed:
        log_external_call_end(
            logger,
            "member-cluster",
            NODES_PATH,
            success=False,
            duration_ms=(time.monotonic() - started) * 1000,
            error=error,
        )
        return MetadataQueryFailed(f"Listing nodes failed: {error}")
