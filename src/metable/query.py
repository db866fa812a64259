"""SQL predicates that filter owner rows by their metadata.

Each builder returns an ``EXISTS`` clause correlated to the owner table::

    stmt = select(Post).where(where_meta(Meta, Post, codec, "status", "published"))
"""

from __future__ import annotations

import json
import operator
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from sqlalchemy import Numeric, String, Text, and_, cast, false, func, or_
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import select

from metable.codec import ValueCodec, to_datetime, to_decimal
from metable.database.models import SLOT_COLUMNS
from metable.database.sql.models import DECIMAL_SCALE
from metable.owners import owner_type_of, primary_key_attr


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "like": lambda col, val: col.like(val),
    "not like": lambda col, val: col.not_like(val),
}


def _owner_condition(meta_model: type[Any], owner_model: type[Any], owner_type: str | None) -> ColumnElement[bool]:
    pk = getattr(owner_model, primary_key_attr(owner_model))
    return and_(
        meta_model.owner_type == (owner_type or owner_type_of(owner_model)),
        meta_model.owner_id == cast(pk, String),
    )


def slot_expression(meta_model: type[Any], meta_type: str, locale: str) -> Any:
    """Column expression holding the value for ``meta_type``.

    Strings read the ``locale`` translation first and fall back to ``value_string``,
    the same order decoding uses.
    """
    if meta_type == "string":
        return func.coalesce(meta_model.value_translations[locale].as_string(), meta_model.value_string)
    if meta_type == "number":
        # Non-Postgres dialects keep decimals as text; compare numerically.
        return cast(meta_model.value_decimal, Numeric(precision=65, scale=DECIMAL_SCALE))
    return getattr(meta_model, SLOT_COLUMNS[meta_type])


def _comparable_type(codec: ValueCodec, value: Any) -> str:
    if isinstance(value, (Mapping, list, tuple)):
        msg = "Structured meta values cannot be compared in a query"
        raise TypeError(msg)
    return codec.detect_type(value)


def _coerce(meta_type: str, value: Any) -> Any:
    if meta_type == "number":
        return to_decimal(value)
    if meta_type == "date":
        return to_datetime(value)
    return value


def _exists(meta_model: type[Any], owner_model: type[Any], owner_type: str | None, *conditions: Any) -> Any:
    return (
        select(meta_model.id)
        .where(_owner_condition(meta_model, owner_model, owner_type), *conditions)
        .exists()
    )


def where_meta(
    meta_model: type[Any],
    owner_model: type[Any],
    codec: ValueCodec,
    key: str,
    op: Any,
    value: Any = MISSING,
    *,
    locale: str | None = None,
    owner_type: str | None = None,
) -> Any:
    """Owners having meta ``key`` compared ``op`` to ``value``; ``where_meta(..., key, value)`` means ``=``."""
    if value is MISSING:
        op, value = "=", op
    compare = _OPERATORS.get(str(op).lower())
    if compare is None:
        msg = f"Unsupported meta operator {op!r}"
        raise ValueError(msg)
    meta_type = _comparable_type(codec, value)
    column = slot_expression(meta_model, meta_type, locale or codec.config.default_locale)
    value = _coerce(meta_type, value)
    return _exists(
        meta_model,
        owner_model,
        owner_type,
        meta_model.key == key,
        meta_model.type == meta_type,
        compare(column, value),
    )


def where_meta_in(
    meta_model: type[Any],
    owner_model: type[Any],
    codec: ValueCodec,
    key: str,
    values: Iterable[Any],
    *,
    locale: str | None = None,
    owner_type: str | None = None,
) -> Any:
    """Owners whose meta ``key`` is one of ``values``. The first value picks the slot."""
    values = list(values)
    if not values:
        return false()
    meta_type = _comparable_type(codec, values[0])
    column = slot_expression(meta_model, meta_type, locale or codec.config.default_locale)
    values = [_coerce(meta_type, v) for v in values]
    return _exists(
        meta_model,
        owner_model,
        owner_type,
        meta_model.key == key,
        meta_model.type == meta_type,
        column.in_(values),
    )


def where_meta_like(
    meta_model: type[Any],
    owner_model: type[Any],
    key: str,
    pattern: str,
    *,
    owner_type: str | None = None,
) -> Any:
    """Owners whose string meta ``key`` matches ``pattern`` in the plain slot or in any translation."""
    translations = cast(meta_model.value_translations, Text)
    # Translations serialise as {"en": "..."}; escape the pattern the way JSON
    # escapes the stored text and anchor it on a quoted value. "!" is the LIKE
    # escape so backslashes stay literal on every dialect.
    encoded = json.dumps(pattern, ensure_ascii=False)[1:-1].replace("!", "!!")
    return _exists(
        meta_model,
        owner_model,
        owner_type,
        meta_model.key == key,
        meta_model.type == "string",
        or_(
            meta_model.value_string.like(pattern),
            translations.like(f'%"{encoded}"%', escape="!"),
        ),
    )


__all__ = ["MISSING", "slot_expression", "where_meta", "where_meta_in", "where_meta_like"]
