"""SQLAlchemy schema definitions for the metadata store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import MetaData
from sqlmodel import SQLModel

from metable.database.sql.models import build_meta_table_model


@dataclass
class SQLAModels:
    """Container for the metadata SQLModel classes."""

    Base: type[Any]
    Meta: type[Any]


_MODEL_CACHE: dict[str, SQLAModels] = {}


def get_sqlalchemy_models(*, table_prefix: str = "") -> SQLAModels:
    """Build (and cache) SQLModel ORM models for metadata storage.

    Args:
        table_prefix: Prefix for the metas table name.

    Returns:
        SQLAModels with its own MetaData, so several prefixes can coexist.
    """
    cached = _MODEL_CACHE.get(table_prefix)
    if cached:
        return cached

    metadata_obj = MetaData()
    meta_model = build_meta_table_model(tablename=f"{table_prefix}metas", metadata=metadata_obj)

    class MetaBase(SQLModel):
        __abstract__ = True
        metadata = metadata_obj

    models = SQLAModels(Base=MetaBase, Meta=meta_model)
    _MODEL_CACHE[table_prefix] = models
    return models


__all__ = ["SQLAModels", "get_sqlalchemy_models"]
