"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from sqlalchemy import text

from shared.observability import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Health check",
    description="Basic health check endpoint.",
)
async def health():
    """Basic health check."""
    return {"status": "healthy", "service": "cluster-registry"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if service is ready to receive traffic.",
)
async def ready(request: Request):
    """Readiness check.

    Verifies the database and Redis connections and that the reconciler
    loop is running.
    """
    checks = {
        "database": False,
        "redis": False,
        "reconciler": False,
    }

    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        logger.warning("Database readiness check failed", error=str(e))

    try:
        health_result = await request.app.state.redis.health_check()
        checks["redis"] = health_result.get("status") == "healthy"
    except Exception as e:
        logger.warning("Redis readiness check failed", error=str(e))

    reconciler = getattr(request.app.state, "reconciler", None)
    checks["reconciler"] = bool(reconciler and reconciler.running)

    all_ready = all(checks.values())

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
    }
