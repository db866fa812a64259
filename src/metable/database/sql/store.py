"""SQL database store for metadata (SQLite or Postgres)."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import inspect
from sqlmodel import SQLModel

from metable.database.interfaces import Database
from metable.database.repositories import MetaRepo
from metable.database.sql.repositories.meta_repo import SQLMetaRepo
from metable.database.sql.schema import SQLAModels, get_sqlalchemy_models
from metable.database.sql.session import SessionManager

logger = logging.getLogger(__name__)


class SQLStore(Database):
    """SQL-backed metadata store.

    Attributes:
        meta_repo: Repository for meta rows.
        sessions: Session factory shared with host-entity persistence.
        meta_model: Concrete metas table class.
    """

    meta_repo: MetaRepo
    sessions: SessionManager
    meta_model: type[Any]

    def __init__(
        self,
        *,
        dsn: str,
        ddl_mode: str = "create",
        table_prefix: str = "",
        sqla_models: SQLAModels | None = None,
        engine_kwargs: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            dsn: SQLAlchemy connection string (e.g. "sqlite:///meta.db").
            ddl_mode: "create" runs create_all, "validate" only checks the metas table exists.
            table_prefix: Prefix for the metas table name.
            sqla_models: Pre-built SQLModel classes.
            engine_kwargs: Extra keyword arguments for create_engine.
        """
        self.dsn = dsn
        self.ddl_mode = ddl_mode
        self.sessions = SessionManager(dsn=dsn, engine_kwargs=engine_kwargs)
        self._sqla_models = sqla_models or get_sqlalchemy_models(table_prefix=table_prefix)
        self.meta_model = self._sqla_models.Meta

        if ddl_mode == "create":
            self.create_tables()
        else:
            self._validate_tables()

        self.meta_repo = SQLMetaRepo(
            meta_model=self.meta_model,
            sessions=self.sessions,
        )

    def create_tables(self) -> None:
        """Create host tables registered on SQLModel.metadata and the metas table."""
        SQLModel.metadata.create_all(self.sessions.engine)
        self._sqla_models.Base.metadata.create_all(self.sessions.engine)
        self.sessions.forget_columns()
        logger.info("Meta tables created/verified on %s", self.sessions.engine.url.render_as_string(hide_password=True))

    def _validate_tables(self) -> None:
        table = self.meta_model.__tablename__
        names = set(inspect(self.sessions.engine).get_table_names())
        if table not in names:
            msg = f"Metas table {table!r} is missing; run migrations or use ddl_mode='create'"
            raise RuntimeError(msg)

    def close(self) -> None:
        """Close the database connection and release resources."""
        self.sessions.close()


__all__ = ["SQLStore"]
