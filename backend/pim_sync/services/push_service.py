"""Enqueue and status lookups for push jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from pim_sync.core.exceptions import JobNotFoundError, ValidationError
from pim_sync.models.job import AuthContext, Job, JobType
from pim_sync.services.job_queue import JobQueue
from pim_sync.services.job_store import JobStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnqueueResult:
    job_id: str
    queue_pos: int
    queue_total: int


@dataclass(frozen=True)
class JobSnapshot:
    """A job plus where it currently sits in the queue (0 when not queued)."""

    job: Job
    queue_pos: int
    queue_total: int


class PushService:
    def __init__(self, store: JobStore, queue: JobQueue):
        self.store = store
        self.queue = queue

    def enqueue(
        self,
        rows: Sequence[dict[str, Any]] | None,
        auth: AuthContext,
        job_type: JobType = "product_data",
    ) -> EnqueueResult:
        """Create a pending job and put it at the tail of the queue."""
        if not rows:
            raise ValidationError("No rows to push")

        self.store.evict_expired()
        job = Job(type=job_type, rows=tuple(dict(row) for row in rows), auth=auth)
        self.store.insert(job)
        queue_pos, queue_total = self.queue.push(job.id)

        logger.info(
            f"Queued {job_type} job {job.id} for {auth.username} "
            f"({job.total} row(s), {auth.environment.name}), position {queue_pos}/{queue_total}"
        )
        return EnqueueResult(job_id=job.id, queue_pos=queue_pos, queue_total=queue_total)

    def snapshot(self, job: Job) -> JobSnapshot:
        return JobSnapshot(
            job=job,
            queue_pos=self.queue.position(job.id),
            queue_total=len(self.queue),
        )

    def get(self, job_id: str) -> JobSnapshot:
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return self.snapshot(job)

    def list(self, limit: int = 50, status: str | None = None) -> list[JobSnapshot]:
        return [self.snapshot(job) for job in self.store.list(limit=limit, status=status)]
