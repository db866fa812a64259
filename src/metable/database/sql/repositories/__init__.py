"""SQL repository implementations for metable."""

from metable.database.sql.repositories.base import SQLRepoBase
from metable.database.sql.repositories.meta_repo import SQLMetaRepo

__all__ = ["SQLMetaRepo", "SQLRepoBase"]
