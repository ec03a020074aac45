"""Background consumer that drains the push queue one job at a time."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable

from pim_sync.core.exceptions import EnvironmentNotConfiguredError
from pim_sync.models.job import AuthContext, Job
from pim_sync.services.field_map import DEFAULT_FIELD_MAP, FieldMapping
from pim_sync.services.job_queue import JobQueue
from pim_sync.services.job_store import JobStore
from pim_sync.services.record_api import RecordApiClient
from pim_sync.workers.push_rows import process_product_row, process_validation_row

logger = logging.getLogger(__name__)

ClientFactory = Callable[[AuthContext], RecordApiClient]


class JobRunner:
    """Single consumer for the job queue.

    Rows of a job are pushed strictly in order, each call awaited before the
    next, and a job only leaves the queue head once it is terminal. Start it
    with ``start()`` inside a running event loop; ``stop()`` cancels the loop
    and leaves any in-flight job as it is.
    """

    def __init__(
        self,
        store: JobStore,
        queue: JobQueue,
        client_factory: ClientFactory = RecordApiClient,
        field_map: tuple[FieldMapping, ...] | list[FieldMapping] = DEFAULT_FIELD_MAP,
        *,
        price_field: str = "Base Price",
        price_level_marker: str = "pricelevel=1",
        store_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.store = store
        self.queue = queue
        self.client_factory = client_factory
        self.field_map = field_map
        self.price_field = price_field
        self.price_level_marker = price_level_marker
        self.store_retries = store_retries
        self.retry_delay = retry_delay
        self.current_job_id: str | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self.run(), name="pim-sync-job-runner")
        logger.info("Job runner started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Job runner stopped")

    async def run(self) -> None:
        while True:
            job_id = await self.queue.head()
            try:
                await self.run_job(job_id)
            except Exception as exc:
                logger.error(f"Runner failed on job {job_id}: {exc}", exc_info=True)
                self.queue.remove(job_id)

    async def run_job(self, job_id: str) -> None:
        """Run the job at the head of the queue through to a terminal state.

        A job store failure outside the per-row isolation marks the job
        ``error`` before it leaves the queue, so pollers never see a job that
        is off the queue yet still pending.
        """
        job: Job | None = None
        self.current_job_id = job_id
        try:
            job = self.store.get(job_id)
            if job is None or job.status != "pending":
                self.queue.remove(job_id)
                return

            finished = await self._execute(job)
            if finished:
                self.store.save(job)
                counts = job.counts()
                logger.info(
                    f"Job {job_id} {job.status}: {counts['Success']} succeeded, "
                    f"{counts['Error']} failed, {counts['Skipped']} skipped"
                )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(f"Job {job_id} failed outside row processing: {exc}", exc_info=True)
            await self._record_failure(job_id, job, exc)
        finally:
            self.current_job_id = None

        self.queue.remove(job_id)
        self.store.evict_expired()

    async def _record_failure(self, job_id: str, job: Job | None, exc: Exception) -> None:
        """Write the job back as ``error``, retrying while the store is down."""
        message = str(exc) or exc.__class__.__name__
        for attempt in range(1, self.store_retries + 1):
            try:
                if job is None:
                    job = self.store.get(job_id)
                    if job is None:
                        return
                if not job.is_terminal:
                    job.mark_error(message)
                self.store.save(job)
                return
            except Exception as retry_exc:
                logger.warning(
                    f"Could not record failure of job {job_id} "
                    f"(attempt {attempt}/{self.store_retries}): {retry_exc}"
                )
                await asyncio.sleep(self.retry_delay)
        state = job.status if job is not None else "unknown"
        logger.critical(f"Job {job_id} dropped from the queue while stored as {state}")

    async def _execute(self, job: Job) -> bool:
        """Process every row; False when the job vanished from the store mid-run."""
        try:
            client = self.client_factory(job.auth)
        except EnvironmentNotConfiguredError as exc:
            logger.error(f"Job {job.id} cannot start: {exc}")
            job.mark_error(str(exc))
            return True
        except Exception as exc:
            logger.error(f"Job {job.id} cannot start: {exc}", exc_info=True)
            job.mark_error(str(exc) or exc.__class__.__name__)
            return True

        try:
            async with client:
                job.mark_running()
                self.store.save(job)
                logger.info(
                    f"Running job {job.id}: environment={job.environment} "
                    f"({job.auth.environment.account}), user={job.auth.username}, "
                    f"rows={job.total}"
                )

                for row in job.rows:
                    if not self.store.exists(job.id):
                        logger.warning(f"Job {job.id} disappeared from the store; stopping")
                        return False

                    if job.type == "validation":
                        result = await process_validation_row(row, client)
                    else:
                        result = await process_product_row(
                            row,
                            client,
                            self.field_map,
                            price_field=self.price_field,
                            price_level_marker=self.price_level_marker,
                        )
                    job.record(result)
                    self.store.save(job)
        except asyncio.CancelledError:
            logger.warning(f"Job {job.id} interrupted at row {job.processed}/{job.total}")
            raise
        except Exception as exc:
            logger.error(f"Job {job.id} aborted: {exc}", exc_info=True)
            job.mark_error(str(exc) or exc.__class__.__name__)
            return True

        job.mark_completed()
        return True
