"""Member cluster reconciler.

Runs one worker per registered, in-scope member cluster. Each worker
repeats a reconciliation pass every probe interval:

1. Resolve credentials from the referenced secret
2. Probe the API endpoint
3. Derive the next Ready condition
4. Refresh zones/region when the cluster is Ready
5. Write the status in a single update

A periodic resync starts workers for new registrations and stops workers
for removed or out-of-scope ones. Workers never share state.
"""

from __future__ import annotations

import asyncio
import zlib
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import async_sessionmaker

from shared.config import ClusterRegistrySettings
from shared.models import (
    ClusterConditionType,
    ClusterCredentials,
    ConditionStatus,
    MemberCluster,
    MemberClusterStatus,
)
from shared.observability import cluster_log_context, get_logger

from ..errors import CredentialError, MetadataQueryFailed
from ..repositories.cluster_repository import ClusterRepository
from .condition_state import ConditionStateMachine, Observation
from .credential_resolver import CredentialResolver
from .endpoint_probe import EndpointProbe
from .event_service import EventService
from .metadata_sync import MetadataSync

logger = get_logger(__name__)

RESYNC_ERROR_BACKOFF_SECONDS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ClusterWorker:
    """Handle on the background loop of one member cluster."""

    name: str
    stop: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task | None = None

    @property
    def stopped(self) -> bool:
        return self.stop.is_set()


class ClusterReconciler:
    """Keeps the Ready condition of every in-scope member cluster current."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: ClusterRegistrySettings,
        credential_resolver: CredentialResolver,
        probe: EndpointProbe,
        metadata_sync: MetadataSync,
        event_service: EventService | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.credential_resolver = credential_resolver
        self.probe = probe
        self.metadata_sync = metadata_sync
        self.event_service = event_service
        self.state_machine = ConditionStateMachine(settings.failure_threshold)
        self._clock = clock
        self._workers: dict[str, ClusterWorker] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._failure_counts: dict[str, int] = {}
        self._running = False

    @property
    def workers(self) -> dict[str, ClusterWorker]:
        """Snapshot of the active workers by cluster name."""
        return dict(self._workers)

    @property
    def running(self) -> bool:
        return self._running

    def in_scope(self, cluster: MemberCluster) -> bool:
        """Check whether this instance is responsible for a cluster."""
        if self.settings.limited_scope:
            namespace = cluster.metadata.namespace or self.settings.control_plane_namespace
            if namespace != self.settings.control_plane_namespace:
                return False

        if self.settings.shard_count > 1:
            shard = zlib.crc32(cluster.name.encode()) % self.settings.shard_count
            return shard == self.settings.shard_index

        return True

    async def reconcile(self, name: str) -> MemberClusterStatus | None:
        """Run one reconciliation pass for a cluster.

        Returns:
            The status that was written, or None when the cluster is no
            longer registered or was deregistered during the pass
        """
        lock = self._locks.setdefault(name, asyncio.Lock())
        async with lock:
            with cluster_log_context(name):
                return await self._reconcile(name, self._workers.get(name))

    async def _reconcile(
        self, name: str, worker: ClusterWorker | None
    ) -> MemberClusterStatus | None:
        async with self.session_factory() as session:
            model = await ClusterRepository(session).get_by_name(name)
            if model is None:
                logger.info("Cluster no longer registered")
                return None
            cluster = ClusterRepository.to_member_cluster(model)

        observation, credentials = await self._observe(cluster)
        failures = self._record_observation(name, observation)

        status = cluster.status.model_copy(deep=True)
        previous_state = status.state
        condition = self.state_machine.next_condition(
            status.get_condition(ClusterConditionType.READY),
            observation,
            self._clock(),
            consecutive_failures=failures,
        )
        status.set_condition(condition)

        if observation.healthy and condition.status == ConditionStatus.TRUE:
            await self._refresh_metadata(cluster, credentials, status)

        if worker is not None and worker.stopped:
            logger.info("Discarding pass result for deregistered cluster")
            return None

        async with self.session_factory() as session:
            written = await ClusterRepository(session).update_status(
                name, status, probed_at=condition.last_probe_time
            )
        if not written:
            logger.info("Cluster removed during pass, status not written")
            return None

        if status.state != previous_state:
            logger.info(
                "Cluster state changed",
                old_state=previous_state.value,
                new_state=status.state.value,
                reason=condition.reason,
            )
            await self._publish_state_change(name, previous_state.value, status.state.value, condition.reason)
        else:
            logger.debug("Cluster state unchanged", state=status.state.value, reason=condition.reason)

        return status

    async def _observe(
        self, cluster: MemberCluster
    ) -> tuple[Observation, ClusterCredentials | None]:
        """Resolve credentials and probe; a credential fault skips the probe."""
        try:
            credentials = await self.credential_resolver.resolve(
                cluster.spec.secret_ref.name,
                ca_bundle=cluster.spec.ca_bundle,
            )
        except CredentialError as e:
            logger.warning("Credential resolution failed", error=str(e))
            return Observation.credential_failure(e), None
        except Exception as e:
            logger.error("Error reading credential secret", error=str(e))
            return Observation.credential_failure(e), None

        result = await self.probe.probe(cluster.spec.api_endpoint, credentials)
        return Observation.from_probe(result), credentials

    def _record_observation(self, name: str, observation: Observation) -> int:
        """Update the failure streak of a cluster and return it."""
        if observation.healthy:
            self._failure_counts[name] = 0
        else:
            self._failure_counts[name] = self._failure_counts.get(name, 0) + 1
        return self._failure_counts[name]

    async def _refresh_metadata(
        self,
        cluster: MemberCluster,
        credentials: ClusterCredentials | None,
        status: MemberClusterStatus,
    ) -> None:
        if credentials is None:
            return
        try:
            metadata = await self.metadata_sync.sync(cluster.spec.api_endpoint, credentials)
        except MetadataQueryFailed as e:
            logger.warning("Metadata sync failed, keeping last known zones and region", error=str(e))
            return

        status.zones = metadata.zones
        status.region = metadata.region

    async def _publish_state_change(
        self, name: str, old_state: str, new_state: str, reason: str
    ) -> None:
        if self.event_service is None:
            return
        try:
            await self.event_service.publish_cluster_status_changed(name, old_state, new_state, reason)
        except Exception as e:
            logger.warning("Failed to publish state change event", error=str(e))

    def start_worker(self, name: str) -> ClusterWorker:
        """Start the background loop for a cluster if not already running."""
        existing = self._workers.get(name)
        if existing is not None:
            return existing

        worker = ClusterWorker(name=name)
        worker.task = asyncio.create_task(self._run_worker(worker), name=f"cluster-worker-{name}")
        self._workers[name] = worker
        logger.info("Cluster worker started", cluster=name)
        return worker

    async def deregister(self, name: str) -> bool:
        """Stop the worker of a cluster.

        An in-flight pass is cancelled and its result discarded.

        Returns:
            False if no worker was running for the cluster
        """
        worker = self._workers.pop(name, None)
        if worker is None:
            self._locks.pop(name, None)
            self._failure_counts.pop(name, None)
            return False

        worker.stop.set()
        if worker.task is not None and worker.task is not asyncio.current_task():
            worker.task.cancel()
            await asyncio.gather(worker.task, return_exceptions=True)

        self._locks.pop(name, None)
        self._failure_counts.pop(name, None)
        logger.info("Cluster worker stopped", cluster=name)
        return True

    async def sync_workers(self) -> None:
        """Match the set of workers to the registered, in-scope clusters."""
        namespace = self.settings.control_plane_namespace if self.settings.limited_scope else None
        async with self.session_factory() as session:
            models = await ClusterRepository(session).list(namespace=namespace)

        wanted = {
            cluster.name
            for cluster in map(ClusterRepository.to_member_cluster, models)
            if self.in_scope(cluster)
        }

        for name in sorted(wanted - set(self._workers)):
            self.start_worker(name)

        for name in sorted(set(self._workers) - wanted):
            await self.deregister(name)

    async def shutdown(self) -> None:
        """Stop every worker."""
        self._running = False
        for name in list(self._workers):
            await self.deregister(name)

    async def run(self) -> None:
        """Resync workers in the background until cancelled."""
        self._running = True
        logger.info(
            "Starting cluster reconciler",
            probe_interval_seconds=self.settings.probe_interval_seconds,
            resync_interval_seconds=self.settings.resync_interval_seconds,
            limited_scope=self.settings.limited_scope,
            shard_index=self.settings.shard_index,
            shard_count=self.settings.shard_count,
        )

        while self._running:
            try:
                await self.sync_workers()
                await asyncio.sleep(self.settings.resync_interval_seconds)

            except asyncio.CancelledError:
                logger.info("Cluster reconciler cancelled")
                break
            except Exception as e:
                logger.error("Error resyncing cluster workers", error=str(e))
                await asyncio.sleep(RESYNC_ERROR_BACKOFF_SECONDS)

        await self.shutdown()

    async def _run_worker(self, worker: ClusterWorker) -> None:
        while not worker.stopped:
            try:
                await self.reconcile(worker.name)
            except Exception as e:
                logger.error("Reconciliation pass failed", cluster=worker.name, error=str(e))

            try:
                await asyncio.wait_for(
                    worker.stop.wait(), timeout=self.settings.probe_interval_seconds
                )
            except asyncio.TimeoutError:
                pass
