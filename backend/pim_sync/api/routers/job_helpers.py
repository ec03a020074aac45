"""Shared helpers for shaping job responses."""
from __future__ import annotations

from pim_sync.api.schemas.job import JobStatus, RowResultOut
from pim_sync.services.push_service import JobSnapshot


def serialize_job(snapshot: JobSnapshot, include_results: bool = True) -> JobStatus:
    """Combine stored job state with its live queue position."""
    job = snapshot.job

    progress = job.processed / job.total if job.total else None
    if job.status == "pending" and snapshot.queue_pos:
        message = f"Queued ({snapshot.queue_pos}/{snapshot.queue_total})"
    elif job.status == "error":
        message = f"Failed: {job.error}"
    else:
        counts = job.counts()
        message = (
            f"Processed {job.processed}/{job.total} rows "
            f"({counts['Success']} ok, {counts['Error']} failed, {counts['Skipped']} skipped)"
        )

    results = (
        [
            RowResultOut(item_id=r.item_id, status=r.status, response=r.response)
            for r in job.results
        ]
        if include_results
        else []
    )

    return JobStatus(
        id=job.id,
        type=job.type,
        status=job.status,
        environment=job.environment,
        username=job.auth.username,
        processed=job.processed,
        total=job.total,
        progress=progress,
        message=message,
        results=results,
        queue_pos=snapshot.queue_pos,
        queue_total=snapshot.queue_total,
        error=job.error,
        created_at=job.created_at,
        started_at=job.started_at,
        finished_at=job.finished_at,
    )
