from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MetaRepo(Protocol):
    """Repository contract for owner-scoped metadata rows."""

    def upsert(self, owner_type: str, owner_id: str, key: str, type_hint: str) -> Any: ...

    def save(self, record: Any) -> Any: ...

    def find_by_key(self, owner_type: str, owner_id: str, key: str) -> Any | None: ...

    def delete_by_key(self, owner_type: str, owner_id: str, key: str) -> None: ...

    def delete_all_for_owner(self, owner_type: str, owner_id: str) -> int: ...

    def list_keys(self, owner_type: str, owner_id: str) -> set[str]: ...

    def list_for_owner(self, owner_type: str, owner_id: str) -> list[Any]: ...
