from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from metable.database.repositories import MetaRepo
from metable.database.sql.session import SessionManager


@runtime_checkable
class Database(Protocol):
    """Backend contract for the metadata store."""

    meta_repo: MetaRepo
    sessions: SessionManager
    meta_model: type[Any]

    def close(self) -> None: ...


__all__ = ["Database"]
