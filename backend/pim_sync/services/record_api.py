"""Signed REST calls against the ERP record API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from pim_sync.core.exceptions import EnvironmentNotConfiguredError
from pim_sync.models.job import AuthContext
from pim_sync.utils.oauth import build_authorization_header

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 30.0
NO_CONTENT = {"status": "No Content (204)"}


@dataclass
class ApiResponse:
    """Outcome of one ERP call with the body decoded as far as possible."""

    method: str
    url: str
    status_code: int
    data: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def error(self) -> str | None:
        if self.ok:
            return None
        body = self.data if isinstance(self.data, str) else json.dumps(self.data)
        return f"HTTP {self.status_code}: {body[:200]}"


def parse_body(text: str) -> Any:
    """JSON when the body is JSON, raw text otherwise, a marker when empty."""
    if not text or not text.strip():
        return dict(NO_CONTENT)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def self_link(entry: Any) -> str | None:
    """Return the ``rel=self`` href of a collection entry."""
    if not isinstance(entry, dict):
        return None
    for link in entry.get("links") or []:
        if isinstance(link, dict) and link.get("rel") == "self":
            return link.get("href")
    return None


class RecordApiClient:
    """Async client bound to one job's identity and target environment.

    Use as an async context manager so the underlying connection pool is
    closed when the job finishes.
    """

    def __init__(
        self,
        auth: AuthContext,
        *,
        record_type: str = "inventoryItem",
        timeout: float = TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        missing = auth.environment.missing_fields()
        if missing:
            raise EnvironmentNotConfiguredError(
                f"{auth.environment.name} environment is missing: {', '.join(missing)}"
            )
        if not auth.token_id or not auth.token_secret:
            raise EnvironmentNotConfiguredError(
                f"User {auth.username} has no token for {auth.environment.name}"
            )
        self.auth = auth
        self.record_type = record_type
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={"User-Agent": "PIM-Sync/1.0"},
        )

    async def __aenter__(self) -> RecordApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def rest_url(self) -> str:
        return str(self.auth.environment.rest_url).rstrip("/")

    def record_url(self, record_id: Any) -> str:
        return f"{self.rest_url}/{self.record_type}/{record_id}"

    def price_collection_url(self, record_id: Any) -> str:
        return f"{self.record_url(record_id)}/price"

    def _headers(self, method: str, url: str) -> dict[str, str]:
        env = self.auth.environment
        return {
            "Authorization": build_authorization_header(
                method,
                url,
                consumer_key=env.consumer_key or "",
                consumer_secret=env.consumer_secret or "",
                token_id=self.auth.token_id,
                token_secret=self.auth.token_secret,
                realm=env.account,
            ),
            "Content-Type": "application/json",
        }

    async def request(
        self, method: str, url: str, body: dict[str, Any] | None = None
    ) -> ApiResponse:
        headers = self._headers(method, url)
        content = None
        if body is not None:
            headers["Prefer"] = "return=representation"
            content = json.dumps(body)
            logger.debug(f"Payload for {method} {url}: {content}")

        logger.info(f"[{self.auth.environment.name}] {method} {url}")
        response = await self._client.request(method, url, content=content, headers=headers)
        result = ApiResponse(
            method=method,
            url=url,
            status_code=response.status_code,
            data=parse_body(response.text),
        )
        if not result.ok:
            logger.warning(f"[{self.auth.environment.name}] {method} {url} -> {result.error}")
        return result

    async def get(self, url: str) -> ApiResponse:
        return await self.request("GET", url)

    async def patch(self, url: str, body: dict[str, Any]) -> ApiResponse:
        return await self.request("PATCH", url, body)

    async def patch_record(self, record_id: Any, payload: dict[str, Any]) -> ApiResponse:
        return await self.patch(self.record_url(record_id), payload)

    async def get_price_collection(self, record_id: Any) -> ApiResponse:
        return await self.get(self.price_collection_url(record_id))
