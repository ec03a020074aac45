"""Simple health and readiness endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from redis.exceptions import RedisError

from pim_sync.api.dependencies.services import get_push_service, get_runner
from pim_sync.services.push_service import PushService
from pim_sync.workers.runner import JobRunner

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live", summary="Liveness probe")
async def live() -> dict[str, str]:
    """Indicates API process is running."""
    return {"status": "ok", "service": "pim-sync-api"}


@router.get("/ready", summary="Readiness probe")
async def ready(
    service: PushService = Depends(get_push_service),
    runner: JobRunner = Depends(get_runner),
) -> dict[str, Any]:
    """Check the job store and the background runner.

    Returns 503 with the per-check detail when either is unhealthy.
    """
    checks: dict[str, Any] = {
        "status": "ok",
        "service": "pim-sync-api",
        "checks": {},
    }
    all_healthy = True

    try:
        service.store.ping()
        checks["checks"]["job_store"] = {
            "status": "healthy",
            "message": f"{type(service.store).__name__} reachable",
        }
    except RedisError as e:
        logger.error(f"Job store health check failed: {e}", exc_info=True)
        checks["checks"]["job_store"] = {
            "status": "unhealthy",
            "message": f"Redis connection failed: {str(e)}",
        }
        all_healthy = False

    if runner.is_running:
        checks["checks"]["runner"] = {
            "status": "healthy",
            "current_job": runner.current_job_id,
            "queue_length": len(service.queue),
        }
    else:
        checks["checks"]["runner"] = {
            "status": "unhealthy",
            "message": "Job runner is not running",
        }
        all_healthy = False

    if not all_healthy:
        checks["status"] = "degraded"
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=checks)
    return checks
