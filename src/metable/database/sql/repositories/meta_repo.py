from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete
from sqlmodel import Session, select

from metable.database.repositories.meta import MetaRepo
from metable.database.sql.repositories.base import SQLRepoBase
from metable.database.sql.session import SessionManager

logger = logging.getLogger(__name__)


class SQLMetaRepo(SQLRepoBase, MetaRepo):
    def __init__(
        self,
        *,
        meta_model: type[Any],
        sessions: SessionManager,
    ) -> None:
        super().__init__(sessions=sessions)
        self._meta_model = meta_model

    @property
    def meta_model(self) -> type[Any]:
        return self._meta_model

    def _owner_key_stmt(self, owner_type: str, owner_id: str, key: str) -> Any:
        model = self._meta_model
        return select(model).where(
            model.owner_type == owner_type,
            model.owner_id == owner_id,
            model.key == key,
        )

    def upsert(self, owner_type: str, owner_id: str, key: str, type_hint: str) -> Any:
        """Locate the row for (owner, key) or build an unsaved one typed ``type_hint``."""
        with self._sessions.session() as session:
            row = session.exec(self._owner_key_stmt(owner_type, owner_id, key)).first()
        if row is not None:
            return row
        return self._meta_model(owner_type=owner_type, owner_id=owner_id, key=key, type=type_hint)

    def save(self, record: Any) -> Any:
        record.updated_at = self._now()
        with self._sessions.session() as session:
            row = session.merge(record)
            session.commit()
            session.refresh(row)
        logger.debug("Saved meta %s for %s:%s (type=%s)", row.key, row.owner_type, row.owner_id, row.type)
        return row

    def find_by_key(self, owner_type: str, owner_id: str, key: str) -> Any | None:
        with self._sessions.session() as session:
            return session.exec(self._owner_key_stmt(owner_type, owner_id, key)).first()

    def delete_by_key(self, owner_type: str, owner_id: str, key: str) -> None:
        model = self._meta_model
        stmt = delete(model).where(
            model.owner_type == owner_type,
            model.owner_id == owner_id,
            model.key == key,
        )
        with self._sessions.session() as session:
            session.exec(stmt)  # type: ignore[call-overload]
            session.commit()

    def delete_all_for_owner(self, owner_type: str, owner_id: str, *, session: Session | None = None) -> int:
        """Remove every row for the owner; joins the caller's transaction when ``session`` is given."""
        model = self._meta_model
        stmt = delete(model).where(model.owner_type == owner_type, model.owner_id == owner_id)
        if session is not None:
            return session.exec(stmt).rowcount  # type: ignore[call-overload]
        with self._sessions.session() as own:
            count = own.exec(stmt).rowcount  # type: ignore[call-overload]
            own.commit()
        return count

    def list_keys(self, owner_type: str, owner_id: str) -> set[str]:
        model = self._meta_model
        stmt = select(model.key).where(model.owner_type == owner_type, model.owner_id == owner_id).distinct()
        with self._sessions.session() as session:
            return set(session.exec(stmt).all())

    def list_for_owner(self, owner_type: str, owner_id: str) -> list[Any]:
        model = self._meta_model
        stmt = (
            select(model)
            .where(model.owner_type == owner_type, model.owner_id == owner_id)
            .order_by(model.key)
        )
        with self._sessions.session() as session:
            return list(session.exec(stmt).all())


__all__ = ["SQLMetaRepo"]
