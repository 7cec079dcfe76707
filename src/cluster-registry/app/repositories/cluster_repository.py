"""Member cluster data access repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import ClusterModel
from shared.models import (
    MemberCluster,
    MemberClusterSpec,
    MemberClusterStatus,
    ObjectMeta,
    SecretReference,
)

from ..errors import ClusterAlreadyExistsError


class ClusterRepository:
    """Repository for member cluster registrations.

    Spec columns are written by create/delete only. The status column is
    written by update_status only.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, cluster: MemberCluster, default_namespace: str) -> ClusterModel:
        """Persist a new registration.

        Raises:
            ClusterAlreadyExistsError: a cluster with the same name exists
        """
        model = ClusterModel(**self.from_member_cluster(cluster, default_namespace))
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ClusterAlreadyExistsError(f"Cluster '{cluster.name}' already exists") from e
        await self.session.refresh(model)
        return model

    async def get_by_name(self, name: str) -> ClusterModel | None:
        result = await self.session.execute(
            select(ClusterModel).where(ClusterModel.name == name)
        )
        return result.scalar_one_or_none()

    async def list(self, namespace: str | None = None) -> list[ClusterModel]:
        """List registrations ordered by name, optionally in one namespace."""
        query = select(ClusterModel).order_by(ClusterModel.name)
        if namespace is not None:
            query = query.where(ClusterModel.namespace == namespace)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, name: str) -> bool:
        cluster = await self.get_by_name(name)
        if not cluster:
            return False

        await self.session.delete(cluster)
        await self.session.commit()
        return True

    async def update_status(
        self,
        name: str,
        status: MemberClusterStatus,
        probed_at: datetime | None = None,
    ) -> bool:
        """Replace the status of a registration in a single statement.

        Returns False when the registration no longer exists.
        """
        result = await self.session.execute(
            update(ClusterModel)
            .where(ClusterModel.name == name)
            .values(
                status=status.model_dump(mode="json", by_alias=True),
                last_probed_at=probed_at,
                updated_at=func.now(),
            )
        )
        await self.session.commit()
        return result.rowcount > 0

    @staticmethod
    def from_member_cluster(cluster: MemberCluster, default_namespace: str) -> dict[str, Any]:
        """Map a registration onto table columns."""
        return {
            "name": cluster.metadata.name,
            "namespace": cluster.metadata.namespace or default_namespace,
            "labels": dict(cluster.metadata.labels),
            "api_endpoint": cluster.spec.api_endpoint,
            "ca_bundle": cluster.spec.ca_bundle,
            "secret_name": cluster.spec.secret_ref.name,
            "status": cluster.status.model_dump(mode="json", by_alias=True),
        }

    @staticmethod
    def to_member_cluster(model: ClusterModel) -> MemberCluster:
        """Rebuild the registration resource from a row."""
        return MemberCluster(
            metadata=ObjectMeta(
                name=model.name,
                namespace=model.namespace,
                labels=model.labels or {},
                creation_timestamp=model.created_at,
            ),
            spec=MemberClusterSpec(
                api_endpoint=model.api_endpoint,
                ca_bundle=model.ca_bundle,
                secret_ref=SecretReference(name=model.secret_name),
            ),
            status=MemberClusterStatus.model_validate(model.status or {}),
        )
