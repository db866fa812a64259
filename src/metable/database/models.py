from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

MetaType = Literal["boolean", "number", "string", "json", "date"]

META_TYPES: tuple[MetaType, ...] = ("boolean", "number", "string", "json", "date")

# Python form a number or date was written in, so decoding can hand the same kind back.
ValueFormat = Literal["float", "date", "naive"]

# Column read for each type tag. String values live in translations first,
# value_string is the untranslated fallback.
SLOT_COLUMNS: dict[str, str] = {
    "boolean": "value_boolean",
    "number": "value_decimal",
    "string": "value_string",
    "json": "value_json",
    "date": "value_datetime",
}


class MetaRecord(BaseModel):
    """Backend-agnostic view of one metadata row."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    owner_type: str
    owner_id: str
    key: str
    type: MetaType = "string"
    value_string: str | None = None
    value_translations: dict[str, str] | None = None
    value_json: Any = None
    value_decimal: Decimal | None = None
    value_boolean: bool | None = None
    value_datetime: datetime | None = None
    value_format: ValueFormat | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = ["META_TYPES", "SLOT_COLUMNS", "MetaRecord", "MetaType", "ValueFormat"]
