"""Per-row push logic: primary record PATCH plus price-tier sync."""

from __future__ import annotations

import logging
from typing import Any

from pim_sync.models.job import RowResult
from pim_sync.services.field_map import FieldMapping, build_update, to_number
from pim_sync.services.record_api import RecordApiClient, self_link

logger = logging.getLogger(__name__)

MISSING_INTERNAL_ID = {"reason": "Missing Internal ID"}


def _skipped(item_id: Any) -> RowResult:
    return RowResult(item_id=item_id, status="Skipped", response=dict(MISSING_INTERNAL_ID))


async def sync_price(
    client: RecordApiClient,
    record_id: Any,
    price: float,
    price_level_marker: str,
) -> tuple[list[dict[str, Any]], str | None]:
    """Bring the matching price tier to ``price``.

    Returns the price entries for the row result and the first write error,
    if any. A tier already at ``price`` is recorded as unchanged and not
    written.
    """
    entries: list[dict[str, Any]] = []
    error: str | None = None

    collection = await client.get_price_collection(record_id)
    items = collection.data.get("items") if isinstance(collection.data, dict) else None
    if not isinstance(items, list):
        logger.warning(f"Price collection for {record_id} has no items list")
        entries.append({"error": "Unexpected GET response", "data": collection.data})
        return entries, error

    for item in items:
        link = self_link(item)
        if not link or price_level_marker not in link:
            continue

        current = await client.get(link)
        current_price = current.data.get("price") if isinstance(current.data, dict) else None
        if current.ok and to_number(current_price) == price:
            logger.info(f"Skipping {link}, already at {price}")
            entries.append({"link": link, "newValue": price, "unchanged": True})
            continue

        written = await client.patch(link, {"price": price})
        entry = {"link": link, "newValue": price, "result": written.data}
        if written.error:
            entry["error"] = written.error
            error = error or written.error
        entries.append(entry)

    return entries, error


async def process_product_row(
    row: dict[str, Any],
    client: RecordApiClient,
    field_map: tuple[FieldMapping, ...] | list[FieldMapping],
    *,
    price_field: str = "Base Price",
    price_level_marker: str = "pricelevel=1",
) -> RowResult:
    """Push one grid row; failures become an Error result, never an exception."""
    item_id = row.get("Item ID")
    record_id = row.get("Internal ID")
    if not record_id:
        return _skipped(item_id)

    response: dict[str, Any] = {"main": None, "prices": [], "error": None}
    result = RowResult(item_id=item_id, response=response)

    try:
        payload, price = build_update(row, field_map, price_field)

        main = await client.patch_record(record_id, payload)
        response["main"] = main.data
        if main.error:
            response["error"] = main.error

        if price is not None:
            prices, price_error = await sync_price(
                client, record_id, price, price_level_marker
            )
            response["prices"] = prices
            if price_error and not response["error"]:
                response["error"] = price_error

        if response["error"]:
            result.status = "Error"
        elif response["main"] is not None or any("result" in p for p in response["prices"]):
            result.status = "Success"
        else:
            result.status = "Skipped"
    except Exception as exc:
        logger.error(f"Exception for item {item_id}: {exc}", exc_info=True)
        response["error"] = str(exc) or exc.__class__.__name__
        result.status = "Error"

    return result


async def process_validation_row(row: dict[str, Any], client: RecordApiClient) -> RowResult:
    """PATCH a pre-built field payload as-is."""
    record_id = row.get("internalid")
    if not record_id:
        return _skipped(record_id)

    result = RowResult(item_id=record_id)
    try:
        written = await client.patch_record(record_id, row.get("fields") or {})
        result.response = written.data
        result.status = "Error" if written.error else "Success"
    except Exception as exc:
        logger.error(f"Exception for item {record_id}: {exc}", exc_info=True)
        result.response = str(exc) or exc.__class__.__name__
        result.status = "Error"
    return result
