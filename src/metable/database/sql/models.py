"""SQLModel table definitions for metadata storage."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pendulum
from sqlalchemy import JSON, MetaData, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import DateTime, Numeric, TypeDecorator
from sqlmodel import Field, Index, SQLModel, func

# 30 fractional digits, matching the precision callers are promised.
DECIMAL_SCALE = 30


class UTCDateTime(TypeDecorator):
    """DateTime stored as naive UTC and returned timezone-aware.

    SQLite drops tzinfo on the way back, so normalise on write and
    re-attach UTC on read for every dialect.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        return pendulum.instance(value.replace(tzinfo=timezone.utc))


class PreciseDecimal(TypeDecorator):
    """Arbitrary-precision decimal.

    Postgres gets a native NUMERIC. Other dialects (SQLite stores NUMERIC as
    REAL) keep the canonical string form so no digits are lost.
    """

    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(precision=65, scale=DECIMAL_SCALE, asdecimal=True))
        return dialect.type_descriptor(String(96))

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        if dialect.name == "postgresql":
            return value
        return str(value)

    def process_result_value(self, value: Any, dialect: Any) -> Decimal | None:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))


JSONType = JSON().with_variant(JSONB(), "postgresql")


class MetaModel(SQLModel):
    """Columns shared by every metas table; concrete tables come from build_meta_table_model."""

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        sa_type=String,
    )
    owner_type: str = Field(sa_type=String, nullable=False)
    owner_id: str = Field(sa_type=String, nullable=False)
    key: str = Field(sa_type=String, nullable=False)
    type: str = Field(default="string", sa_type=String, nullable=False)
    value_string: str | None = Field(default=None, sa_type=Text, nullable=True)
    value_translations: dict[str, str] | None = Field(default=None, sa_type=JSONType, nullable=True)
    value_json: Any = Field(default=None, sa_type=JSONType, nullable=True)
    value_decimal: Decimal | None = Field(default=None, sa_type=PreciseDecimal, nullable=True)
    value_boolean: bool | None = Field(default=None, nullable=True)
    value_datetime: datetime | None = Field(default=None, sa_type=UTCDateTime, nullable=True)
    value_format: str | None = Field(default=None, sa_type=String, nullable=True)
    created_at: datetime = Field(
        default_factory=lambda: pendulum.now("UTC"),
        sa_type=UTCDateTime,
        sa_column_kwargs={"server_default": func.now()},
    )
    updated_at: datetime = Field(
        default_factory=lambda: pendulum.now("UTC"),
        sa_type=UTCDateTime,
    )


def build_meta_table_model(
    *,
    tablename: str,
    metadata: MetaData | None = None,
) -> type[SQLModel]:
    """Build a concrete metas table bound to ``metadata``."""
    table_args = (
        Index(f"ix_{tablename}__owner", "owner_type", "owner_id"),
        Index(f"ix_{tablename}__unique_owner_key", "owner_type", "owner_id", "key", unique=True),
    )
    attrs: dict[str, Any] = {
        "__module__": MetaModel.__module__,
        "__tablename__": tablename,
        "__table_args__": table_args,
    }
    if metadata is not None:
        attrs["metadata"] = metadata

    # Use type() instead of create_model to properly preserve SQLModel table behavior
    return type(
        f"{tablename.title().replace('_', '')}Table",
        (MetaModel,),
        attrs,
        table=True,
    )


__all__ = [
    "DECIMAL_SCALE",
    "JSONType",
    "MetaModel",
    "PreciseDecimal",
    "UTCDateTime",
    "build_meta_table_model",
]
