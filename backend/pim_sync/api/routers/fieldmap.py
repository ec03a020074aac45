"""Read-only field map for the grid front end."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from pim_sync.api.dependencies.auth import get_auth_context
from pim_sync.models.job import AuthContext

router = APIRouter()


@router.get("/", summary="Editable columns and their ERP attributes")
async def get_field_map(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
) -> list[dict]:
    return [
        mapping.model_dump(by_alias=True)
        for mapping in request.app.state.runner.field_map
    ]
