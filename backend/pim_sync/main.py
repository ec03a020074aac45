"""FastAPI application bootstrap: routers plus the background push runner."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pim_sync.api.routers import fieldmap, health, jobs, push
from pim_sync.core.config import Settings, get_settings
from pim_sync.services.field_map import load_field_map
from pim_sync.services.job_queue import JobQueue
from pim_sync.services.job_store import JobStore, create_job_store
from pim_sync.services.push_service import PushService
from pim_sync.services.record_api import RecordApiClient
from pim_sync.workers.runner import ClientFactory, JobRunner

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    store: JobStore | None = None,
    client_factory: ClientFactory | None = None,
) -> FastAPI:
    """Instantiate the FastAPI app and wire the queue, store and runner.

    ``store`` and ``client_factory`` default to what the settings describe;
    pass them to swap in a different backend or a fake ERP transport.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        job_store = store or create_job_store(settings)
        queue = JobQueue()
        runner = JobRunner(
            job_store,
            queue,
            client_factory
            or partial(
                RecordApiClient,
                record_type=settings.record_type,
                timeout=settings.erp_timeout_seconds,
            ),
            load_field_map(settings.field_map_path),
            price_field=settings.price_field,
            price_level_marker=settings.price_level_marker,
        )
        app.state.push_service = PushService(job_store, queue)
        app.state.runner = runner
        runner.start()
        try:
            yield
        finally:
            await runner.stop()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    logger.info(f"[CORS] Allowed origins: {settings.cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(push.router, prefix="/api/push", tags=["push"])
    app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
    app.include_router(fieldmap.router, prefix="/api/fieldmap", tags=["fieldmap"])

    return app


app = create_app()
