"""Member cluster registration API endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request, status
from pydantic import ValidationError

from shared.models import (
    MemberCluster,
    MemberClusterList,
    MemberClusterStatus,
    UnknownKindError,
)
from shared.observability import get_logger

from ..errors import ClusterAlreadyExistsError, ClusterNotFoundError
from ..services.cluster_service import ClusterService
from ..services.reconciler import ClusterReconciler

logger = get_logger(__name__)

router = APIRouter()


def _cluster_service(request: Request, session) -> ClusterService:
    return ClusterService(
        session,
        request.app.state.settings.control_plane_namespace,
        getattr(request.app.state, "event_service", None),
    )


def _not_found(e: ClusterNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "CLUSTER_NOT_FOUND", "message": str(e)},
    )


def _decode_member_cluster(request: Request, manifest: dict[str, Any]) -> MemberCluster:
    """Decode a manifest through the scheme, accepting only MemberCluster."""
    try:
        decoded = request.app.state.scheme.decode(manifest)
    except UnknownKindError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "UNKNOWN_KIND", "message": str(e)},
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "INVALID_MANIFEST", "message": str(e)},
        )

    if not isinstance(decoded, MemberCluster):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "UNKNOWN_KIND",
                "message": f"{decoded.kind} cannot be registered, submit a MemberCluster",
            },
        )
    return decoded


@router.post(
    "/clusters",
    response_model=MemberCluster,
    status_code=status.HTTP_201_CREATED,
    summary="Register a member cluster",
    description="Register a MemberCluster manifest and start reconciling it.",
)
async def create_cluster(
    request: Request,
    manifest: dict[str, Any] = Body(...),
):
    """Register a member cluster.

    The manifest's status is ignored; the new registration starts with
    no conditions.
    """
    cluster = _decode_member_cluster(request, manifest)
    reconciler: ClusterReconciler = request.app.state.reconciler

    async with request.app.state.session_factory() as session:
        service = _cluster_service(request, session)
        try:
            registered = await service.register(cluster)
        except ClusterAlreadyExistsError as e:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"error": "CLUSTER_ALREADY_EXISTS", "message": str(e)},
            )

    if reconciler.in_scope(registered):
        reconciler.start_worker(registered.name)
    else:
        logger.info("Registered cluster is out of scope for this instance", cluster=registered.name)

    return registered


@router.get(
    "/clusters",
    response_model=MemberClusterList,
    summary="List member clusters",
    description="List all member cluster registrations, ordered by name.",
)
async def list_clusters(request: Request, namespace: str | None = None):
    async with request.app.state.session_factory() as session:
        return await _cluster_service(request, session).list(namespace=namespace)


@router.get(
    "/clusters/{name}",
    response_model=MemberCluster,
    summary="Get member cluster",
    description="Get a member cluster registration by name.",
)
async def get_cluster(request: Request, name: str):
    async with request.app.state.session_factory() as session:
        try:
            return await _cluster_service(request, session).get(name)
        except ClusterNotFoundError as e:
            raise _not_found(e)


@router.get(
    "/clusters/{name}/status",
    response_model=MemberClusterStatus,
    summary="Get member cluster status",
    description="Get the last written status of a member cluster without probing it.",
)
async def get_cluster_status(request: Request, name: str):
    async with request.app.state.session_factory() as session:
        try:
            cluster = await _cluster_service(request, session).get(name)
        except ClusterNotFoundError as e:
            raise _not_found(e)
    return cluster.status


@router.post(
    "/clusters/{name}/probe",
    response_model=MemberClusterStatus,
    summary="Reconcile member cluster now",
    description="Run one reconciliation pass immediately and return the written status.",
)
async def probe_cluster(request: Request, name: str):
    reconciler: ClusterReconciler = request.app.state.reconciler
    result = await reconciler.reconcile(name)
    if result is None:
        raise _not_found(ClusterNotFoundError(f"Cluster '{name}' not found"))
    return result


@router.delete(
    "/clusters/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deregister member cluster",
    description="Stop reconciling a member cluster and remove its registration.",
)
async def delete_cluster(request: Request, name: str):
    reconciler: ClusterReconciler = request.app.state.reconciler
    await reconciler.deregister(name)

    async with request.app.state.session_factory() as session:
        try:
            await _cluster_service(request, session).delete(name)
        except ClusterNotFoundError as e:
            raise _not_found(e)
