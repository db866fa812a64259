from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

logger = logging.getLogger(__name__)

_MEMORY_DSNS = {"sqlite://", "sqlite:///:memory:"}


def _json_serializer(value: Any) -> str:
    # Keep non-ASCII translations readable so LIKE can match them. Decimals and
    # dates nested in json values are stored in their string form.
    return json.dumps(value, ensure_ascii=False, default=to_jsonable_python)


class SessionManager:
    """Owns the engine, hands out sessions and caches live column listings."""

    def __init__(self, *, dsn: str, engine_kwargs: dict[str, Any] | None = None) -> None:
        kw: dict[str, Any] = {"json_serializer": _json_serializer}
        if dsn in _MEMORY_DSNS:
            # One shared connection, otherwise every checkout sees an empty database.
            kw.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
        kw.update(engine_kwargs or {})
        self.dsn = dsn
        self.engine: Engine = create_engine(dsn, **kw)
        self._columns: dict[str, frozenset[str]] = {}

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    def column_names(self, table: str) -> frozenset[str]:
        """Columns of ``table`` as reported by the database, cached for this engine."""
        cached = self._columns.get(table)
        if cached is not None:
            return cached
        try:
            names = frozenset(col["name"] for col in inspect(self.engine).get_columns(table))
        except Exception as exc:
            logger.warning("Failed to inspect columns of %s: %s", table, exc)
            return frozenset()
        self._columns[table] = names
        return names

    def forget_columns(self, table: str | None = None) -> None:
        if table is None:
            self._columns.clear()
        else:
            self._columns.pop(table, None)

    def close(self) -> None:
        self.engine.dispose()


__all__ = ["SessionManager"]
