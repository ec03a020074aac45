"""Display-field to ERP-attribute mapping and payload coercion."""

from __future__ import annotations

import json
import logging
import math
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

logger = logging.getLogger(__name__)

FieldKind = Literal["Free-Form Text", "Currency", "Checkbox", "List/Record"]

INTERNAL_ID_SUFFIX = "_InternalId"
LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class FieldMapping(BaseModel):
    """One editable column and how its value is sent to the ERP."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    remote_key: str = Field(alias="internalid")
    kind: FieldKind = Field(default="Free-Form Text", alias="fieldType")


DEFAULT_FIELD_MAP: tuple[FieldMapping, ...] = (
    FieldMapping(name="Name", remote_key="itemid", kind="Free-Form Text"),
    FieldMapping(name="Display Name", remote_key="displayname", kind="Free-Form Text"),
    FieldMapping(name="Supplier Name", remote_key="vendorname", kind="Free-Form Text"),
    FieldMapping(name="Class", remote_key="class", kind="List/Record"),
    FieldMapping(name="Purchase Price", remote_key="cost", kind="Currency"),
    FieldMapping(name="Base Price", remote_key="price", kind="Currency"),
    FieldMapping(name="Sub-Class", remote_key="custitem_sb_sub_class", kind="List/Record"),
    FieldMapping(name="Lead Time", remote_key="custitem_sb_leadtime_ltd", kind="List/Record"),
    FieldMapping(name="Preferred Supplier", remote_key="vendor", kind="List/Record"),
    FieldMapping(name="inactive", remote_key="isinactive", kind="Checkbox"),
)

_field_map_adapter = TypeAdapter(list[FieldMapping])


def load_field_map(path: str | Path | None = None) -> tuple[FieldMapping, ...]:
    """Return the built-in map, or the one stored as a JSON list at ``path``."""
    if not path:
        return DEFAULT_FIELD_MAP
    raw = Path(path).read_text(encoding="utf-8")
    mappings = tuple(_field_map_adapter.validate_python(json.loads(raw)))
    logger.info(f"Loaded {len(mappings)} field mappings from {path}")
    return mappings


def to_number(value: Any) -> float | None:
    """Parse a grid cell as a number, None when it isn't one.

    Text is read up to the end of its leading number, so ``"12.5 GBP"`` is
    12.5 and ``"GBP 12.5"`` is not a number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = LEADING_NUMBER.match(str(value))
        if match is None:
            return None
        number = float(match.group(1))
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def coerce_value(mapping: FieldMapping, value: Any, row: dict[str, Any]) -> Any:
    """Convert one cell into the shape the ERP expects for its field kind."""
    if mapping.kind == "List/Record":
        internal_id = row.get(f"{mapping.name}{INTERNAL_ID_SUFFIX}") or value
        return {
            "id": str(internal_id),
            "refName": value,
            "type": mapping.remote_key,
        }
    if mapping.kind == "Currency":
        return to_number(value) or 0.0
    if mapping.kind == "Checkbox":
        return str(value).lower() == "true" or str(value) == "1"
    return str(value)


def build_update(
    row: dict[str, Any],
    field_map: tuple[FieldMapping, ...] | list[FieldMapping],
    price_field: str = "Base Price",
) -> tuple[dict[str, Any], float | None]:
    """Build the primary PATCH body for a row and pull out the price.

    Blank cells are left out of the payload. The price column never goes into
    the payload; it is returned separately (None when absent or not numeric)
    because prices live on a sub-resource.
    """
    payload: dict[str, Any] = {}
    price: float | None = None

    for mapping in field_map:
        value = row.get(mapping.name)
        if _is_blank(value):
            continue
        if mapping.name == price_field:
            price = to_number(value)
            continue
        payload[mapping.remote_key] = coerce_value(mapping, value, row)

    return payload, price
