from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol, runtime_checkable

from metable.settings import MetaConfig

logger = logging.getLogger(__name__)


class _Absent:
    """Cached marker for "no such meta", distinct from a stored ``None``."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __deepcopy__(self, memo: dict[int, Any]) -> "_Absent":
        return self


ABSENT = _Absent()


@runtime_checkable
class CacheStore(Protocol):
    """Key/value cache with forever retention."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def forget(self, key: str) -> bool: ...

    def has(self, key: str) -> bool: ...

    def remember_forever(self, key: str, loader: Callable[[], Any]) -> Any: ...


class InMemoryCacheStore(CacheStore):
    """Process-local CacheStore. Values are copied in and out, like a serialising cache would."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def forget(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def has(self, key: str) -> bool:
        value = self._data.get(key)
        return value is not None and value is not ABSENT

    def remember_forever(self, key: str, loader: Callable[[], Any]) -> Any:
        if key in self._data:
            return self.get(key)
        value = loader()
        self.set(key, value)
        return value

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class MetaCache:
    """Per (owner, key, locale) cache of decoded meta values."""

    def __init__(self, store: CacheStore, config: MetaConfig) -> None:
        self.store = store
        self.config = config
        # Locales outside the configured set that have been read through this cache.
        self._extra_locales: set[str] = set()

    def cache_key(self, owner_type: str, owner_id: str, key: str, locale: str | None) -> str:
        return f"{self.config.cache_prefix}.{owner_type}.{owner_id}.{key}.{locale or self.config.default_locale}"

    def resolve(
        self,
        owner_type: str,
        owner_id: str,
        key: str,
        locale: str | None,
        loader: Callable[[], Any],
    ) -> Any:
        cache_key = self.cache_key(owner_type, owner_id, key, locale)
        if locale and locale not in self.config.invalidation_locales:
            self._extra_locales.add(locale)

        def _load() -> Any:
            logger.debug("Meta cache miss %s", cache_key)
            return loader()

        return self.store.remember_forever(cache_key, _load)

    def has(self, owner_type: str, owner_id: str, key: str, locale: str | None = None) -> bool:
        return self.store.has(self.cache_key(owner_type, owner_id, key, locale))

    def invalidate(self, owner_type: str, owner_id: str, key: str) -> None:
        # Configured locales whether read or not, plus any other locale this cache has served.
        for locale in (*self.config.invalidation_locales, *sorted(self._extra_locales)):
            self.store.forget(self.cache_key(owner_type, owner_id, key, locale))
        logger.debug("Invalidated meta cache for %s:%s %s", owner_type, owner_id, key)

    def invalidate_all(self, owner_type: str, owner_id: str, keys: Iterable[str]) -> None:
        for key in keys:
            self.invalidate(owner_type, owner_id, key)


__all__ = ["ABSENT", "CacheStore", "InMemoryCacheStore", "MetaCache"]
