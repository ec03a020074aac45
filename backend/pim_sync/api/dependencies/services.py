"""Application-scoped service dependencies."""

from fastapi import Request

from pim_sync.core.config import Settings
from pim_sync.services.push_service import PushService
from pim_sync.workers.runner import JobRunner


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


def get_push_service(request: Request) -> PushService:
    """FastAPI dependency returning the push service built at startup."""
    return request.app.state.push_service


def get_runner(request: Request) -> JobRunner:
    return request.app.state.runner
