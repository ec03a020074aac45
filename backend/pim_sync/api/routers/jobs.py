"""Push job listing and live progress stream."""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from pim_sync.api.dependencies.auth import get_auth_context
from pim_sync.api.dependencies.services import get_app_settings, get_push_service
from pim_sync.api.routers.job_helpers import serialize_job
from pim_sync.api.schemas.job import JobStatus
from pim_sync.core.config import Settings
from pim_sync.core.exceptions import JobNotFoundError
from pim_sync.models.job import AuthContext
from pim_sync.services.push_service import PushService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/",
    summary="List push jobs",
    response_model=list[JobStatus],
)
async def list_jobs(
    limit: int = Query(50, ge=1, le=500, description="Maximum number of jobs to return"),
    status: str | None = Query(None, description="Filter by status (pending, running, completed, error)"),
    auth: AuthContext = Depends(get_auth_context),
    service: PushService = Depends(get_push_service),
) -> list[JobStatus]:
    """Return jobs newest first, without per-row results."""
    try:
        return [
            serialize_job(snapshot, include_results=False)
            for snapshot in service.list(limit=limit, status=status)
        ]
    except Exception as e:
        logger.error(f"Failed to list jobs: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to retrieve jobs: {str(e)}"
        )


@router.get(
    "/{job_id}/stream",
    summary="Server-Sent Events stream for real-time progress",
)
async def stream_job_progress(
    job_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: PushService = Depends(get_push_service),
    settings: Settings = Depends(get_app_settings),
) -> StreamingResponse:
    """Stream job snapshots via Server-Sent Events (SSE).

    Each ``data:`` event carries the same JSON as the status endpoint. The
    stream ends with an ``event: close`` once the job is completed or failed,
    or ``event: timeout`` when nothing has changed for too long.
    """
    try:
        service.get(job_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Job not found") from exc

    async def event_generator() -> AsyncGenerator[str, None]:
        last_processed = -1
        last_status = None
        unchanged = 0

        while True:
            try:
                snapshot = service.get(job_id)
            except JobNotFoundError:
                yield "event: error\ndata: {\"error\": \"Job not found\"}\n\n"
                break

            job_status = serialize_job(snapshot)
            if job_status.processed != last_processed or job_status.status != last_status:
                last_processed = job_status.processed
                last_status = job_status.status
                unchanged = 0
            else:
                unchanged += 1

            yield f"data: {job_status.model_dump_json(by_alias=True)}\n\n"

            if job_status.status in ("completed", "error"):
                yield "event: close\ndata: {}\n\n"
                break

            if unchanged > settings.stream_idle_limit:
                yield "event: timeout\ndata: {}\n\n"
                break

            await asyncio.sleep(settings.stream_interval_seconds)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
