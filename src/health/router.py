"""Health check endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse

from src.core.database import ping_cassandra
from src.core.logging import get_logger
from src.core.state import AppContext, get_app_context


logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

ContextDep = Annotated[AppContext, Depends(get_app_context)]


async def _redis_status(context: AppContext) -> str:
    if not context.settings.redis_enabled:
        return "disabled"
    if context.redis is None:
        return "unavailable"
    try:
        await context.redis.ping()
    except Exception as e:
        logger.warning("redis_ping_failed", error=str(e))
        return "error"
    return "connected"


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(context: ContextDep) -> ORJSONResponse:
    """Readiness probe - ready once the store answers."""
    if ping_cassandra(context.cassandra_session):
        return ORJSONResponse({"status": "ready"})
    return ORJSONResponse(
        {"status": "not_ready"},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("")
async def health(context: ContextDep) -> dict[str, Any]:
    """General health check with store, cache and worker status."""
    settings = context.settings
    store_ok = ping_cassandra(context.cassandra_session)
    worker = context.activation_worker

    return {
        "status": "healthy" if store_ok else "degraded",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if store_ok else "disconnected",
        "redis": await _redis_status(context),
        "activation_worker": worker.get_stats() if worker else None,
    }
