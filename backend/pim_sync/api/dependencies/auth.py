"""Caller identity for push requests."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from pim_sync.api.dependencies.services import get_app_settings
from pim_sync.core.config import Settings
from pim_sync.core.exceptions import AuthenticationError
from pim_sync.models.job import AuthContext


def resolve_auth_context(
    settings: Settings,
    username: str | None,
    token_id: str | None,
    token_secret: str | None,
    environment: str | None = None,
) -> AuthContext:
    """Build the credentials a job will be signed with."""
    if not username:
        raise AuthenticationError("Not authenticated")
    if not token_id or not token_secret:
        raise AuthenticationError(f"No ERP token for user {username}")
    return AuthContext(
        username=username,
        token_id=token_id,
        token_secret=token_secret,
        environment=settings.environment_config(environment),
    )


def get_auth_context(
    x_pim_user: str | None = Header(None),
    x_pim_token_id: str | None = Header(None),
    x_pim_token_secret: str | None = Header(None),
    x_pim_environment: str | None = Header("Sandbox"),
    settings: Settings = Depends(get_app_settings),
) -> AuthContext:
    """FastAPI dependency: identity headers set by the login front end."""
    try:
        return resolve_auth_context(
            settings, x_pim_user, x_pim_token_id, x_pim_token_secret, x_pim_environment
        )
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
