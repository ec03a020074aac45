"""Push job state held by the job store."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

JobType = Literal["product_data", "validation"]
JobState = Literal["pending", "running", "completed", "error"]
RowState = Literal["Pending", "Skipped", "Success", "Error"]

TERMINAL_STATES = frozenset({"completed", "error"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EnvironmentConfig(BaseModel):
    """ERP account and consumer credentials for one target environment."""

    name: str = "Sandbox"
    account: str | None = None
    consumer_key: str | None = Field(default=None, exclude=True, repr=False)
    consumer_secret: str | None = Field(default=None, exclude=True, repr=False)
    rest_url: str | None = None

    def missing_fields(self) -> list[str]:
        required = ("account", "consumer_key", "consumer_secret", "rest_url")
        return [field for field in required if not getattr(self, field)]


class AuthContext(BaseModel):
    """Identity and environment a job's API calls are signed with.

    Token and consumer credentials are left out of every serialized form, so a
    job loaded back from JSON carries the identity but cannot sign requests.
    """

    model_config = {"frozen": True}

    username: str
    token_id: str = Field(default="", exclude=True, repr=False)
    token_secret: str = Field(default="", exclude=True, repr=False)
    environment: EnvironmentConfig


class RowResult(BaseModel):
    item_id: Any = None
    status: RowState = "Pending"
    response: Any = None


class Job(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: JobType = "product_data"
    status: JobState = "pending"
    rows: tuple[dict[str, Any], ...]
    total: int = 0
    processed: int = 0
    results: list[RowResult] = Field(default_factory=list)
    auth: AuthContext
    created_at: datetime = Field(default_factory=utc_now)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: str | None = None

    def model_post_init(self, __context: Any) -> None:
        self.total = len(self.rows)

    @property
    def environment(self) -> str:
        return self.auth.environment.name

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def record(self, result: RowResult) -> None:
        """Append a row outcome; processed always tracks len(results)."""
        self.results.append(result)
        self.processed = len(self.results)

    def mark_running(self) -> None:
        self.status = "running"
        self.started_at = utc_now()

    def mark_completed(self) -> None:
        self.status = "completed"
        self.finished_at = utc_now()

    def mark_error(self, message: str) -> None:
        self.status = "error"
        self.error = message
        self.finished_at = utc_now()

    def counts(self) -> dict[str, int]:
        """Tally row outcomes by status."""
        tally = {"Success": 0, "Error": 0, "Skipped": 0}
        for result in self.results:
            if result.status in tally:
                tally[result.status] += 1
        return tally
