"""Cluster service for registration operations."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from shared.models import MemberCluster, MemberClusterList, MemberClusterStatus
from shared.observability import get_logger

from ..errors import ClusterAlreadyExistsError, ClusterNotFoundError
from ..repositories.cluster_repository import ClusterRepository
from .event_service import EventService

logger = get_logger(__name__)


class ClusterService:
    """Service for member cluster registrations.

    Only the `spec` section of a registration is taken from callers; status
    always starts empty and belongs to the reconciler.
    """

    def __init__(
        self,
        session: AsyncSession,
        default_namespace: str,
        event_service: EventService | None = None,
    ):
        self.repository = ClusterRepository(session)
        self.default_namespace = default_namespace
        self.event_service = event_service

    async def register(self, cluster: MemberCluster) -> MemberCluster:
        """Register a new member cluster.

        Raises:
            ClusterAlreadyExistsError: the name is taken
        """
        existing = await self.repository.get_by_name(cluster.name)
        if existing:
            raise ClusterAlreadyExistsError(f"Cluster '{cluster.name}' already exists")

        cluster = cluster.model_copy(update={"status": MemberClusterStatus()})
        model = await self.repository.create(cluster, self.default_namespace)
        logger.info("Cluster registered", cluster=model.name, namespace=model.namespace)

        if self.event_service is not None:
            try:
                await self.event_service.publish_cluster_registered(model.name, model.api_endpoint)
            except Exception as e:
                logger.warning("Failed to publish registration event", cluster=model.name, error=str(e))

        return ClusterRepository.to_member_cluster(model)

    async def get(self, name: str) -> MemberCluster:
        """Get a registration by name.

        Raises:
            ClusterNotFoundError: no cluster with this name
        """
        model = await self.repository.get_by_name(name)
        if not model:
            raise ClusterNotFoundError(f"Cluster '{name}' not found")
        return ClusterRepository.to_member_cluster(model)

    async def list(self, namespace: str | None = None) -> MemberClusterList:
        models = await self.repository.list(namespace=namespace)
        return MemberClusterList(items=[ClusterRepository.to_member_cluster(m) for m in models])

    async def delete(self, name: str) -> None:
        """Remove a registration.

        Raises:
            ClusterNotFoundError: no cluster with this name
        """
        deleted = await self.repository.delete(name)
        if not deleted:
            raise ClusterNotFoundError(f"Cluster '{name}' not found")

        logger.info("Cluster deregistered", cluster=name)

        if self.event_service is not None:
            try:
                await self.event_service.publish_cluster_deleted(name)
            except Exception as e:
                logger.warning("Failed to publish deletion event", cluster=name, error=str(e))
