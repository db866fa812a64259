from __future__ import annotations

from typing import Any

from metable.database.interfaces import Database
from metable.database.sql.store import SQLStore
from metable.settings import DatabaseConfig


def build_database(*, config: DatabaseConfig, engine_kwargs: dict[str, Any] | None = None) -> Database:
    store_config = config.metadata_store
    return SQLStore(
        dsn=store_config.dsn or "sqlite://",
        ddl_mode=store_config.ddl_mode,
        table_prefix=store_config.table_prefix,
        engine_kwargs=engine_kwargs,
    )


__all__ = ["build_database"]
