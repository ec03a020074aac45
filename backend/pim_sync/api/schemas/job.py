"""Push job request/response payloads."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PushRequest(BaseModel):
    rows: list[dict[str, Any]] | None = Field(
        None, description="Grid rows keyed by display field name"
    )


class EnqueueResponse(CamelModel):
    success: bool = True
    message: str
    job_id: str
    queue_pos: int
    queue_total: int


class RowResultOut(CamelModel):
    item_id: Any = None
    status: str
    response: Any = None


class JobStatus(CamelModel):
    id: str
    type: str = Field(..., description="product_data|validation")
    status: str = Field(..., description="pending|running|completed|error")
    environment: str
    username: str
    processed: int
    total: int
    progress: float | None = Field(None, description="0-1 range for UI progress bars")
    message: str | None = None
    results: list[RowResultOut] = Field(default_factory=list)
    queue_pos: int = Field(0, description="1-based queue rank, 0 once finished")
    queue_total: int = 0
    error: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
