from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from metable.cache import ABSENT
from metable.database.models import MetaRecord, MetaType
from metable.errors import OwnerNotPersistedError
from metable.owners import owner_id_of

if TYPE_CHECKING:
    from metable.service import MetaService

logger = logging.getLogger(__name__)


class MetaAttachment:
    """Metadata handle for one host entity.

    Names that belong to the host (model fields, mapped or live columns,
    relationships and ``__meta_native_fields__``) read and write the host.
    Any other attribute is metadata::

        post = service.attach(Post(title="Hello"))
        post.subtitle = "queued until save"
        post.save()
        post.subtitle            # -> "queued until save"
        "subtitle" in post       # cache-backed, see has_meta
        del post.subtitle        # forget_meta

    Names of this class's own methods cannot be used as attribute-style meta
    keys; call ``set_meta``/``get_meta`` for those.
    """

    def __init__(self, owner: Any, service: MetaService) -> None:
        object.__setattr__(self, "_owner", owner)
        object.__setattr__(self, "_service", service)
        object.__setattr__(self, "_owner_type", service.registry.kind_for(type(owner)))
        object.__setattr__(self, "_queued_meta", {})

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def owner_type(self) -> str:
        return self._owner_type

    @property
    def owner_id(self) -> str | None:
        return owner_id_of(self._owner)

    @property
    def queued_meta(self) -> dict[str, Any]:
        return dict(self._queued_meta)

    def _require_owner_id(self) -> str:
        owner_id = self.owner_id
        if owner_id is None:
            msg = f"{type(self._owner).__name__} must be saved before metadata can be written"
            raise OwnerNotPersistedError(msg)
        return owner_id

    # -- metadata CRUD ---------------------------------------------------

    def set_meta(self, key: str, value: Any, locale: str | None = None, *, as_type: MetaType | None = None) -> Any:
        """Create or update meta ``key`` and drop its cached values. Returns the stored row."""
        owner_id = self._require_owner_id()
        service = self._service
        record = service.repo.upsert(
            self._owner_type, owner_id, key, as_type or service.codec.detect_type(value)
        )
        service.codec.encode(record, value, locale, as_type=as_type)
        record = service.repo.save(record)
        service.cache.invalidate(self._owner_type, owner_id, key)
        return record

    def get_meta(self, key: str, default: Any = None, locale: str | None = None) -> Any:
        owner_id = self.owner_id
        if owner_id is None:
            return default
        service = self._service

        def _load() -> Any:
            record = service.repo.find_by_key(self._owner_type, owner_id, key)
            if record is None:
                return ABSENT
            return service.codec.decode(record, locale)

        value = service.cache.resolve(self._owner_type, owner_id, key, locale, _load)
        if value is None or value is ABSENT:
            return default
        return value

    def has_meta(self, key: str, locale: str | None = None) -> bool:
        """Whether a value for ``key`` is currently cached.

        This does not query the store: a key saved but never read reports False.
        """
        owner_id = self.owner_id
        if owner_id is None:
            return False
        return self._service.cache.has(self._owner_type, owner_id, key, locale)

    def forget_meta(self, key: str) -> None:
        owner_id = self._require_owner_id()
        self._service.repo.delete_by_key(self._owner_type, owner_id, key)
        self._service.cache.invalidate(self._owner_type, owner_id, key)

    def sync_meta(self, pairs: Mapping[str, Any], locale: str | None = None) -> None:
        """Apply set_meta for each pair in order. Not transactional."""
        for key, value in pairs.items():
            self.set_meta(key, value, locale)

    def all_meta(self, locale: str | None = None) -> dict[str, Any]:
        owner_id = self.owner_id
        if owner_id is None:
            return {}
        keys = sorted(self._service.repo.list_keys(self._owner_type, owner_id))
        return {key: self.get_meta(key, locale=locale) for key in keys}

    def metas(self) -> list[MetaRecord]:
        owner_id = self.owner_id
        if owner_id is None:
            return []
        rows = self._service.repo.list_for_owner(self._owner_type, owner_id)
        return [MetaRecord.model_validate(row) for row in rows]

    def flush_meta_cache(self, key: str | None = None) -> None:
        """Drop cached values for ``key``, or for every key stored for this owner."""
        owner_id = self.owner_id
        if owner_id is None:
            return
        keys = [key] if key else self._service.repo.list_keys(self._owner_type, owner_id)
        self._service.cache.invalidate_all(self._owner_type, owner_id, keys)

    # -- staged writes and lifecycle -------------------------------------

    def persist_queued_meta(self) -> None:
        if not self._queued_meta:
            return
        logger.debug("Persisting %d queued meta for %s:%s", len(self._queued_meta), self._owner_type, self.owner_id)
        for key, value in self._queued_meta.items():
            self.set_meta(key, value)
        self._queued_meta.clear()

    def save(self) -> Any:
        """Persist the host, then flush queued meta."""
        self._service.save_owner(self._owner)
        self.persist_queued_meta()
        return self._owner

    def delete(self) -> None:
        """Delete the host together with all of its meta rows."""
        self._service.delete_owner(self._owner)
        self._queued_meta.clear()

    # -- attribute-style access ------------------------------------------

    def is_native(self, name: str) -> bool:
        return name in self._service.native_fields_for(type(self._owner))

    def _is_reserved(self, name: str) -> bool:
        return name.startswith("_") or hasattr(type(self), name)

    def __getitem__(self, name: str) -> Any:
        if self.is_native(name):
            return getattr(self._owner, name)
        return self.get_meta(name)

    def __setitem__(self, name: str, value: Any) -> None:
        if self.is_native(name):
            setattr(self._owner, name, value)
        else:
            # A second write before save replaces the first.
            self._queued_meta[name] = value

    def __delitem__(self, name: str) -> None:
        if self.is_native(name):
            delattr(self._owner, name)
            return
        self._queued_meta.pop(name, None)
        if self.owner_id is not None:
            self.forget_meta(name)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails, so methods and properties win.
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __setattr__(self, name: str, value: Any) -> None:
        if self._is_reserved(name) and not self.is_native(name):
            msg = f"{name!r} is reserved on {type(self).__name__}; use set_meta({name!r}, ...)"
            raise AttributeError(msg)
        self[name] = value

    def __delattr__(self, name: str) -> None:
        if self._is_reserved(name) and not self.is_native(name):
            msg = f"{name!r} is reserved on {type(self).__name__}; use forget_meta({name!r})"
            raise AttributeError(msg)
        del self[name]

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        if self.is_native(name):
            return getattr(self._owner, name, None) is not None
        return self.has_meta(name)

    def __repr__(self) -> str:
        return f"<MetaAttachment {self._owner_type}:{self.owner_id} queued={sorted(self._queued_meta)}>"


__all__ = ["MetaAttachment"]
