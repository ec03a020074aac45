"""Keyed storage for push job snapshots (in-process or Redis)."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Protocol

from redis import Redis

from pim_sync.core.config import Settings
from pim_sync.models.job import AuthContext, Job, utc_now
from pim_sync.utils.redis_client import create_redis_client

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    def insert(self, job: Job) -> None: ...

    def save(self, job: Job) -> bool: ...

    def get(self, job_id: str) -> Job | None: ...

    def exists(self, job_id: str) -> bool: ...

    def list(self, limit: int = 50, status: str | None = None) -> list[Job]: ...

    def delete(self, job_id: str) -> bool: ...

    def evict_expired(self, now: datetime | None = None) -> int: ...

    def ping(self) -> bool: ...


class MemoryJobStore:
    """Dict-backed store; ``get`` hands out the live job object.

    Finished jobs are dropped once they are older than ``ttl``; pending and
    running jobs are never evicted.
    """

    def __init__(self, ttl: timedelta = timedelta(hours=24)):
        self.ttl = ttl
        self._jobs: dict[str, Job] = {}

    def insert(self, job: Job) -> None:
        if job.id in self._jobs:
            raise ValueError(f"Duplicate job id {job.id}")
        self._jobs[job.id] = job

    def save(self, job: Job) -> bool:
        """Write back a job that is still stored; deleted jobs stay deleted."""
        if job.id not in self._jobs:
            return False
        self._jobs[job.id] = job
        return True

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def exists(self, job_id: str) -> bool:
        return job_id in self._jobs

    def list(self, limit: int = 50, status: str | None = None) -> list[Job]:
        jobs = sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)
        if status:
            jobs = [j for j in jobs if j.status == status]
        return jobs[:limit]

    def delete(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    def evict_expired(self, now: datetime | None = None) -> int:
        cutoff = (now or utc_now()) - self.ttl
        expired = [
            job_id
            for job_id, job in self._jobs.items()
            if job.is_terminal and job.finished_at and job.finished_at <= cutoff
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.info(f"Evicted {len(expired)} finished job(s)")
        return len(expired)

    def ping(self) -> bool:
        return True


class RedisJobStore:
    """JSON snapshots in Redis with a sorted index for listing.

    Terminal snapshots are written with an expiry, so Redis does the
    eviction; ``evict_expired`` only prunes index entries whose key is gone.

    Snapshots never contain credentials. The signing context of each
    unfinished job stays in this process and is attached again on ``get``;
    it is dropped once the job is terminal or deleted.
    """

    KEY_PREFIX = "pim:jobs:"
    INDEX_KEY = "pim:jobs:index"

    def __init__(self, client: Redis, ttl: timedelta = timedelta(hours=24)):
        self.client = client
        self.ttl = ttl
        self._credentials: dict[str, AuthContext] = {}

    def _key(self, job_id: str) -> str:
        return f"{self.KEY_PREFIX}{job_id}"

    def _expiry(self, job: Job) -> int | None:
        if not job.is_terminal:
            return None
        return max(int(self.ttl.total_seconds()), 1)

    def insert(self, job: Job) -> None:
        created = self.client.set(self._key(job.id), job.model_dump_json(), nx=True)
        if not created:
            raise ValueError(f"Duplicate job id {job.id}")
        self.client.zadd(self.INDEX_KEY, {job.id: job.created_at.timestamp()})
        self._credentials[job.id] = job.auth

    def save(self, job: Job) -> bool:
        written = self.client.set(
            self._key(job.id),
            job.model_dump_json(),
            ex=self._expiry(job),
            xx=True,
        )
        if job.is_terminal or not written:
            self._credentials.pop(job.id, None)
        return bool(written)

    def get(self, job_id: str) -> Job | None:
        raw = self.client.get(self._key(job_id))
        if not raw:
            return None
        job = Job.model_validate_json(raw)
        auth = self._credentials.get(job_id)
        if auth is not None:
            job.auth = auth
        return job

    def exists(self, job_id: str) -> bool:
        return bool(self.client.exists(self._key(job_id)))

    def list(self, limit: int = 50, status: str | None = None) -> list[Job]:
        jobs: list[Job] = []
        for job_id in self.client.zrevrange(self.INDEX_KEY, 0, -1):
            job = self.get(job_id)
            if job is None:
                self.client.zrem(self.INDEX_KEY, job_id)
                continue
            if status and job.status != status:
                continue
            jobs.append(job)
            if len(jobs) >= limit:
                break
        return jobs

    def delete(self, job_id: str) -> bool:
        removed = self.client.delete(self._key(job_id))
        self._credentials.pop(job_id, None)
        self.client.zrem(self.INDEX_KEY, job_id)
        return bool(removed)

    def evict_expired(self, now: datetime | None = None) -> int:
        stale = [
            job_id
            for job_id in self.client.zrange(self.INDEX_KEY, 0, -1)
            if not self.client.exists(self._key(job_id))
        ]
        if stale:
            self.client.zrem(self.INDEX_KEY, *stale)
            for job_id in stale:
                self._credentials.pop(job_id, None)
        return len(stale)

    def ping(self) -> bool:
        return bool(self.client.ping())


def create_job_store(settings: Settings) -> JobStore:
    ttl = timedelta(seconds=settings.job_ttl_seconds)
    if settings.job_store_backend == "redis":
        logger.info("Using Redis job store")
        return RedisJobStore(
            create_redis_client(settings.redis_url, decode_responses=True),
            ttl=ttl,
        )
    return MemoryJobStore(ttl=ttl)
