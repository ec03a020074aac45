"""Endpoints for queueing row pushes and polling their progress."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from pim_sync.api.dependencies.auth import get_auth_context
from pim_sync.api.dependencies.services import get_push_service
from pim_sync.api.routers.job_helpers import serialize_job
from pim_sync.api.schemas.job import EnqueueResponse, JobStatus, PushRequest
from pim_sync.core.exceptions import JobNotFoundError, ValidationError
from pim_sync.models.job import AuthContext, JobType
from pim_sync.services.push_service import PushService

logger = logging.getLogger(__name__)

router = APIRouter()


def _enqueue(
    service: PushService,
    request: PushRequest,
    auth: AuthContext,
    job_type: JobType,
    label: str,
) -> EnqueueResponse:
    try:
        queued = service.enqueue(request.rows, auth, job_type)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:
        logger.error(f"Error enqueueing {job_type} job: {exc}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to queue push job",
        ) from exc

    return EnqueueResponse(
        message=f"{label} queued with {len(request.rows or [])} row(s)",
        job_id=queued.job_id,
        queue_pos=queued.queue_pos,
        queue_total=queued.queue_total,
    )


@router.post(
    "/updates",
    summary="Queue edited grid rows for push to the ERP",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=EnqueueResponse,
)
async def push_updates(
    request: PushRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: PushService = Depends(get_push_service),
) -> EnqueueResponse:
    """Rows are mapped through the field map; ``Base Price`` goes to the price tier."""
    return _enqueue(service, request, auth, "product_data", "Job")


@router.post(
    "/validation",
    summary="Queue pre-built field payloads for push to the ERP",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=EnqueueResponse,
)
async def push_validation(
    request: PushRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: PushService = Depends(get_push_service),
) -> EnqueueResponse:
    """Each row is ``{"internalid": ..., "fields": {...}}``; fields are sent as-is."""
    return _enqueue(service, request, auth, "validation", "Validation job")


@router.get(
    "/status/{job_id}",
    summary="Check push progress",
    response_model=JobStatus,
)
async def get_push_status(
    job_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: PushService = Depends(get_push_service),
) -> JobStatus:
    """Expose counters, row results and queue position for polling clients."""
    try:
        return serialize_job(service.get(job_id))
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Job not found") from exc
    except Exception as exc:
        logger.error(f"Error fetching job status {job_id}: {exc}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve job status",
        ) from exc
