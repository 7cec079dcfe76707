"""Cluster Registry FastAPI Application.

The Cluster Registry Service provides:
- Registration of member clusters with the federation control plane
- Continuous Ready/Offline health tracking of each member cluster
- Zone and region discovery for reachable clusters
- Event emission for cluster state changes
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import ClusterRegistrySettings
from shared.database import Base, create_engine, create_session_factory
from shared.models import build_scheme
from shared.observability import get_logger, setup_logging
from shared.redis_client import RedisClient

from .api import clusters, health
from .services.credential_resolver import CredentialResolver
from .services.endpoint_probe import EndpointProbe
from .services.event_service import EventService
from .services.metadata_sync import MetadataSync
from .services.reconciler import ClusterReconciler

logger = get_logger(__name__)


def build_reconciler(
    settings: ClusterRegistrySettings,
    session_factory,
    event_service: EventService | None = None,
) -> ClusterReconciler:
    """Wire the reconciler and its collaborators from settings."""
    timeout = settings.single_call_timeout_seconds
    return ClusterReconciler(
        session_factory,
        settings,
        credential_resolver=CredentialResolver(settings),
        probe=EndpointProbe(timeout=timeout),
        metadata_sync=MetadataSync(timeout=timeout),
        event_service=event_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown of:
    - Database connections
    - Redis connections
    - Background reconciler task
    """
    settings: ClusterRegistrySettings = app.state.settings
    logger.info("Starting Cluster Registry service", version=settings.app_version)

    # Initialize database
    engine = create_engine(settings.database.async_url, echo=settings.debug)
    session_factory = create_session_factory(engine)
    app.state.db_engine = engine
    app.state.session_factory = session_factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")

    # Initialize Redis
    redis_client = RedisClient(settings.redis.url)
    await redis_client.connect()
    app.state.redis = redis_client
    app.state.event_service = EventService(redis_client)

    # Start background reconciler
    reconciler = build_reconciler(settings, session_factory, app.state.event_service)
    app.state.reconciler = reconciler
    reconciler_task = asyncio.create_task(reconciler.run())
    app.state.reconciler_task = reconciler_task

    logger.info("Cluster Registry service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Cluster Registry service")
    reconciler_task.cancel()
    try:
        await reconciler_task
    except asyncio.CancelledError:
        pass
    await reconciler.shutdown()
    await redis_client.close()
    await engine.dispose()
    logger.info("Cluster Registry service shutdown complete")


def create_app(settings: ClusterRegistrySettings | None = None) -> FastAPI:
    """Create the Cluster Registry application.

    Settings are read once here and shared through app.state.
    """
    settings = settings or ClusterRegistrySettings()
    setup_logging(settings, service_name="cluster-registry")

    app = FastAPI(
        title="Cluster Registry Service",
        description="Registration and health tracking of federation member clusters",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.scheme = build_scheme()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(clusters.router, prefix="/api/v1", tags=["Clusters"])
    app.include_router(health.router, tags=["Health"])

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "service": "cluster-registry",
            "version": settings.app_version,
            "docs": "/docs",
            "kinds": app.state.scheme.known_kinds(),
        }

    return app


app = create_app()
