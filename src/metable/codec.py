"""Type detection and slot encoding for metadata values.

A meta row keeps its logical value in exactly one typed slot, selected by
its ``type`` tag:

=========  ======================================================
boolean    ``value_boolean``
number     ``value_decimal`` (``Decimal``, no precision loss)
string     ``value_translations[locale]``, falling back to ``value_string``
json       ``value_json``
date       ``value_datetime``
=========  ======================================================

A mapping whose keys are all supported locale codes is a translation
bundle and is stored as a string, one translation per locale.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

import pendulum

from metable.database.models import MetaType, ValueFormat
from metable.errors import InvalidMetaValueError
from metable.settings import MetaConfig


class ValueCodec:
    def __init__(self, config: MetaConfig | None = None) -> None:
        self.config = config or MetaConfig()

    def _resolve_locale(self, locale: str | None) -> str:
        return locale or self.config.default_locale

    def is_translation_bundle(self, value: Any) -> bool:
        if isinstance(value, Mapping):
            keys = value.keys()
        elif isinstance(value, (list, tuple)):
            keys = range(len(value))
        else:
            return False
        return all(self.config.is_supported_locale(k) for k in keys)

    def detect_type(self, value: Any) -> MetaType:
        if isinstance(value, (Mapping, list, tuple)):
            return "string" if self.is_translation_bundle(value) else "json"
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, (int, float, Decimal)):
            return "number"
        if isinstance(value, (datetime, date)):
            return "date"
        return "string"

    def decode(self, record: Any, locale: str | None = None) -> Any:
        if record.type == "boolean":
            return record.value_boolean
        if record.type == "date":
            return _restore_datetime(record.value_datetime, record.value_format)
        if record.type == "number":
            if record.value_decimal is None:
                return None
            number = to_decimal(record.value_decimal)
            return float(number) if record.value_format == "float" else number
        if record.type == "json":
            return copy.deepcopy(record.value_json)
        translations = record.value_translations or {}
        text = translations.get(self._resolve_locale(locale))
        return text if text is not None else record.value_string

    def encode(
        self,
        record: Any,
        value: Any,
        locale: str | None = None,
        *,
        as_type: MetaType | None = None,
    ) -> None:
        """Write ``value`` into ``record`` in place, updating its type tag.

        ``as_type`` skips detection and coerces the value into that slot, so
        ``"2024-05-01"`` can be stored as a date or ``"1.50"`` as a number.
        """
        if as_type is None and self.is_translation_bundle(value):
            translations = dict(record.value_translations or {})
            items = value.items() if isinstance(value, Mapping) else ()
            for lang, text in items:
                translations[lang] = text if text is not None else ""
            record.type = "string"
            # Reassign so the ORM sees the JSON column as changed.
            record.value_translations = translations
            return

        meta_type = as_type or self.detect_type(value)
        record.value_format = None
        if meta_type == "boolean":
            record.value_boolean = bool(value)
        elif meta_type == "date":
            record.value_datetime = to_datetime(value)
            record.value_format = _datetime_format(value)
        elif meta_type == "number":
            record.value_decimal = to_decimal(value)
            if isinstance(value, float):
                record.value_format = "float"
        elif meta_type == "json":
            record.value_json = value
        else:
            translations = dict(record.value_translations or {})
            translations[self._resolve_locale(locale)] = str(value)
            record.value_translations = translations
        record.type = meta_type


def _datetime_format(value: Any) -> ValueFormat | None:
    if isinstance(value, datetime):
        return "naive" if value.tzinfo is None else None
    if isinstance(value, date):
        return "date"
    return None


def _restore_datetime(value: datetime | None, value_format: str | None) -> Any:
    # Naive input was stored as UTC wall time.
    if value is None:
        return None
    stored = pendulum.instance(value, tz="UTC")
    if value_format == "date":
        return stored.date()
    if value_format == "naive":
        return stored.naive()
    return stored


def to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return pendulum.instance(datetime.combine(value, time.min))
    try:
        parsed = pendulum.parse(str(value))
    except (ValueError, TypeError) as exc:
        msg = f"Cannot parse {value!r} as a date"
        raise InvalidMetaValueError(msg) from exc
    if not isinstance(parsed, datetime):
        msg = f"Cannot parse {value!r} as a date"
        raise InvalidMetaValueError(msg)
    return parsed


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # repr keeps the shortest round-tripping form instead of the binary expansion
        return Decimal(repr(value))
    text = str(value).strip()
    try:
        if "." in text:
            return Decimal(text)
        return Decimal(int(text))
    except (InvalidOperation, ValueError) as exc:
        msg = f"Cannot parse {value!r} as a number"
        raise InvalidMetaValueError(msg) from exc


__all__ = ["ValueCodec", "to_datetime", "to_decimal"]
