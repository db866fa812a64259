from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlmodel import select

from metable.attachment import MetaAttachment
from metable.cache import CacheStore, InMemoryCacheStore, MetaCache
from metable.codec import ValueCodec
from metable.database.factory import build_database
from metable.database.interfaces import Database
from metable.errors import OwnerNotPersistedError
from metable.owners import OwnerRegistry, native_fields, owner_id_of
from metable.query import MISSING, where_meta, where_meta_in, where_meta_like
from metable.settings import DatabaseConfig, MetaConfig, load_meta_config_from_file

TConfigModel = TypeVar("TConfigModel", bound=BaseModel)

logger = logging.getLogger(__name__)


class MetaService:
    """Wires configuration, storage, cache and codec for metadata owners.

    Usage::

        service = MetaService(meta_config={"supported_locales": ["en", "ar"]}, owners=[Post])
        post = service.attach(Post(title="Hello"))
        post.save()
        post.set_meta("title", {"en": "Hello", "ar": "مرحبا"})
        posts = service.find_owners(Post, service.where_meta(Post, "status", "published"))
    """

    def __init__(
        self,
        *,
        meta_config: MetaConfig | dict[str, Any] | None = None,
        database_config: DatabaseConfig | dict[str, Any] | None = None,
        cache_store: CacheStore | None = None,
        owners: Iterable[type[Any]] = (),
        database: Database | None = None,
    ) -> None:
        if meta_config is None:
            self.meta_config = load_meta_config_from_file()
        else:
            self.meta_config = self._validate_config(meta_config, MetaConfig)
        self.database_config = self._validate_config(database_config, DatabaseConfig)

        self.codec = ValueCodec(self.meta_config)
        self.database: Database = database or build_database(config=self.database_config)
        self.sessions = self.database.sessions
        self.repo = self.database.meta_repo
        self.meta_model = self.database.meta_model
        self.cache = MetaCache(cache_store or InMemoryCacheStore(), self.meta_config)
        self.registry = OwnerRegistry()
        self._native_fields: dict[type[Any], frozenset[str]] = {}

        for model in owners:
            self.register(model)

        logger.info(
            "Meta service ready: locales=%s default=%s",
            ",".join(self.meta_config.supported_locales),
            self.meta_config.default_locale,
        )

    @staticmethod
    def _validate_config(
        config: Any,
        model_type: type[TConfigModel],
    ) -> TConfigModel:
        if isinstance(config, model_type):
            return config
        if config is None:
            return model_type()
        return model_type.model_validate(config)

    def register(self, model: type[Any], kind: str | None = None) -> str:
        """Register an owner model so stored rows can be resolved back to it."""
        self._native_fields.pop(model, None)
        return self.registry.register(model, kind)

    def native_fields_for(self, model: type[Any]) -> frozenset[str]:
        cached = self._native_fields.get(model)
        if cached is not None:
            return cached
        tablename = getattr(model, "__tablename__", None)
        live = self.sessions.column_names(str(tablename)) if tablename else frozenset()
        names = native_fields(model, live)
        self._native_fields[model] = names
        return names

    def attach(self, owner: Any) -> MetaAttachment:
        return MetaAttachment(owner, self)

    # -- host persistence hooks ------------------------------------------

    def save_owner(self, owner: Any) -> Any:
        with self.sessions.session() as session:
            session.add(owner)
            session.commit()
            session.refresh(owner)
        logger.debug("Saved owner %s:%s", self.registry.kind_for(type(owner)), owner_id_of(owner))
        return owner

    def delete_owner(self, owner: Any) -> int:
        """Delete ``owner`` and its meta rows in one transaction. Returns the number of meta rows removed."""
        owner_id = owner_id_of(owner)
        if owner_id is None:
            msg = f"{type(owner).__name__} is not persisted"
            raise OwnerNotPersistedError(msg)
        kind = self.registry.kind_for(type(owner))
        keys = self.repo.list_keys(kind, owner_id)
        with self.sessions.session() as session:
            session.delete(session.merge(owner))
            removed = self.repo.delete_all_for_owner(kind, owner_id, session=session)
            session.commit()
        self.cache.invalidate_all(kind, owner_id, keys)
        logger.debug("Deleted owner %s:%s with %d meta rows", kind, owner_id, removed)
        return removed

    def owner_of(self, record: Any) -> Any | None:
        """Load the entity that owns a meta row."""
        with self.sessions.session() as session:
            return self.registry.load(session, record.owner_type, record.owner_id)

    # -- query predicates ------------------------------------------------

    def where_meta(
        self,
        owner_model: type[Any],
        key: str,
        op: Any,
        value: Any = MISSING,
        *,
        locale: str | None = None,
    ) -> Any:
        return where_meta(
            self.meta_model,
            owner_model,
            self.codec,
            key,
            op,
            value,
            locale=locale,
            owner_type=self.registry.kind_for(owner_model),
        )

    def where_meta_in(
        self,
        owner_model: type[Any],
        key: str,
        values: Iterable[Any],
        *,
        locale: str | None = None,
    ) -> Any:
        return where_meta_in(
            self.meta_model,
            owner_model,
            self.codec,
            key,
            values,
            locale=locale,
            owner_type=self.registry.kind_for(owner_model),
        )

    def where_meta_like(self, owner_model: type[Any], key: str, pattern: str) -> Any:
        return where_meta_like(
            self.meta_model,
            owner_model,
            key,
            pattern,
            owner_type=self.registry.kind_for(owner_model),
        )

    def find_owners(self, owner_model: type[Any], *clauses: Any) -> list[Any]:
        stmt = select(owner_model).where(*clauses)
        with self.sessions.session() as session:
            return list(session.exec(stmt).all())

    def close(self) -> None:
        self.database.close()


__all__ = ["MetaService"]
