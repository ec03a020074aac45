from __future__ import annotations

import asyncio
import json
from functools import partial
from typing import Any, Callable

import httpx
import pytest

from pim_sync.core.config import Settings
from pim_sync.models.job import AuthContext
from pim_sync.services.record_api import RecordApiClient

ERP_BASE = "https://erp.test/services/rest/record/v1"


class FakeErp:
    """In-memory stand-in for the ERP record API.

    Records live at ``/inventoryItem/<id>``, their price collection at
    ``/inventoryItem/<id>/price`` and each price tier at
    ``/inventoryItem/<id>/price/<level>?pricelevel=<level>``.
    """

    def __init__(self, base: str = ERP_BASE):
        self.base = base
        self.requests: list[httpx.Request] = []
        self.records: dict[str, dict[str, Any]] = {}
        self.prices: dict[tuple[str, str], float] = {}
        self.failing_records: set[str] = set()
        self.exploding_records: set[str] = set()
        self.broken_price_collections: set[str] = set()
        self.gate: asyncio.Event | None = None

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, str(r.url)) for r in self.requests]

    def body(self, index: int) -> Any:
        return json.loads(self.requests[index].content)

    def price_link(self, record_id: str, level: str) -> str:
        return f"{self.base}/inventoryItem/{record_id}/price/{level}?pricelevel={level}"

    def client_factory(self) -> Callable[[AuthContext], RecordApiClient]:
        return partial(RecordApiClient, transport=httpx.MockTransport(self.handler))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()

        parts = request.url.path.split("/")
        index = parts.index("inventoryItem")
        record_id = parts[index + 1]
        rest = parts[index + 2:]

        if record_id in self.exploding_records:
            raise httpx.ConnectError("connection refused", request=request)

        if not rest and request.method == "PATCH":
            if record_id in self.failing_records:
                return httpx.Response(
                    400, json={"title": "Bad Request", "o:errorDetails": [{"detail": "Invalid field"}]}
                )
            self.records.setdefault(record_id, {}).update(json.loads(request.content))
            return httpx.Response(204)

        if rest == ["price"] and request.method == "GET":
            if record_id in self.broken_price_collections:
                return httpx.Response(200, json={"links": []})
            items = [
                {"links": [{"rel": "self", "href": self.price_link(record_id, level)}]}
                for level in ("1", "2")
            ]
            return httpx.Response(200, json={"items": items, "count": len(items)})

        if len(rest) == 2 and rest[0] == "price":
            level = rest[1]
            if request.method == "GET":
                return httpx.Response(200, json={"price": self.prices.get((record_id, level))})
            if request.method == "PATCH":
                self.prices[(record_id, level)] = json.loads(request.content)["price"]
                return httpx.Response(204)

        return httpx.Response(404, json={"title": "Not Found"})


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        netsuite_sandbox_account="1234567_SB1",
        netsuite_sandbox_key="consumer-key",
        netsuite_sandbox_secret="consumer-secret",
        netsuite_sandbox_url=ERP_BASE,
        stream_interval_seconds=0,
    )


@pytest.fixture
def auth(settings: Settings) -> AuthContext:
    return AuthContext(
        username="alice",
        token_id="token-id",
        token_secret="token-secret",
        environment=settings.environment_config("Sandbox"),
    )


@pytest.fixture
def fake_erp() -> FakeErp:
    return FakeErp()
