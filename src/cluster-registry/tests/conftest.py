"""Test fixtures for Cluster Registry."""

from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from cluster_fakes import (
    FakeClock,
    FakeCredentialResolver,
    MemberClusterAPI,
    MockRedisClient,
    make_manifest,
)
from shared.config import ClusterRegistrySettings
from shared.database import Base


@pytest.fixture
def settings() -> ClusterRegistrySettings:
    """Registry settings with short timeouts for tests."""
    return ClusterRegistrySettings(
        log_level="DEBUG",
        log_format="text",
        single_call_timeout_seconds=1.0,
        probe_interval_seconds=30.0,
        resync_interval_seconds=60.0,
    )


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create test database engine with tables."""
    # File database so concurrent sessions get their own connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'registry.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture
def mock_redis():
    """Create mock Redis client."""
    return MockRedisClient()


@pytest.fixture
def credential_resolver():
    return FakeCredentialResolver({"member-1-token": "token-1", "member-2-token": "token-2"})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def member_api():
    return MemberClusterAPI()


@pytest.fixture
def sample_manifest() -> dict[str, Any]:
    """Sample MemberCluster manifest for testing."""
    return make_manifest("member-1", "member-1.example.com:6443", "member-1-token")


@pytest_asyncio.fixture
async def registry_app(
    settings, session_factory, mock_redis, credential_resolver, member_api, clock
):
    """Create the application with fakes for the control plane and member clusters.

    The lifespan is not run; app state is wired by hand.
    """
    from app.main import create_app
    from app.services import ClusterReconciler, EndpointProbe, EventService, MetadataSync

    app = create_app(settings)
    event_service = EventService(mock_redis)
    reconciler = ClusterReconciler(
        session_factory,
        settings,
        credential_resolver=credential_resolver,
        probe=EndpointProbe(timeout=1.0, transport=member_api.transport),
        metadata_sync=MetadataSync(timeout=1.0, transport=member_api.transport),
        event_service=event_service,
        clock=clock,
    )
    app.state.session_factory = session_factory
    app.state.redis = mock_redis
    app.state.event_service = event_service
    app.state.reconciler = reconciler

    yield app

    await reconciler.shutdown()


@pytest_asyncio.fixture
async def test_client(registry_app) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    transport = ASGITransport(app=registry_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
