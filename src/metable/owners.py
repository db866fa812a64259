from __future__ import annotations

import logging
from typing import Any, ClassVar

from sqlalchemy import inspect as sa_inspect
from sqlmodel import Session

from metable.errors import UnknownOwnerTypeError

logger = logging.getLogger(__name__)


class Metable:
    """Mixin for SQLModel tables that carry metadata.

    Attributes:
        __meta_owner_type__: Owner kind written to ``metas.owner_type``.
            Defaults to the table name.
        __meta_native_fields__: Extra names that belong to the model rather than
            to metadata, typically properties acting as accessors/mutators.
    """

    __meta_owner_type__: ClassVar[str | None] = None
    __meta_native_fields__: ClassVar[frozenset[str]] = frozenset()


def owner_type_of(model: type[Any]) -> str:
    explicit = getattr(model, "__meta_owner_type__", None)
    if explicit:
        return str(explicit)
    tablename = getattr(model, "__tablename__", None)
    if tablename:
        return str(tablename)
    return model.__name__.lower()


def primary_key_attr(model: type[Any]) -> str:
    mapper = sa_inspect(model)
    pk = mapper.primary_key
    if len(pk) != 1:
        msg = f"{model.__name__} must have a single-column primary key to own metadata"
        raise TypeError(msg)
    return mapper.get_property_by_column(pk[0]).key


def owner_id_of(owner: Any) -> str | None:
    value = getattr(owner, primary_key_attr(type(owner)), None)
    return None if value is None else str(value)


def native_fields(model: type[Any], live_columns: frozenset[str] = frozenset()) -> frozenset[str]:
    """Names routed to the model itself instead of metadata."""
    names: set[str] = set(getattr(model, "model_fields", {}).keys())
    names.update(getattr(model, "__sqlmodel_relationships__", {}).keys())
    names.update(getattr(model, "__meta_native_fields__", ()))
    names.update(live_columns)
    mapper = sa_inspect(model, raiseerr=False)
    if mapper is not None:
        names.update(mapper.attrs.keys())
    return frozenset(names)


class OwnerRegistry:
    """Maps owner kinds stored in ``metas.owner_type`` back to model classes."""

    def __init__(self) -> None:
        self._models: dict[str, type[Any]] = {}

    def register(self, model: type[Any], kind: str | None = None) -> str:
        kind = kind or owner_type_of(model)
        existing = self._models.get(kind)
        if existing is not None and existing is not model:
            msg = f"Owner type {kind!r} is already registered to {existing.__name__}"
            raise ValueError(msg)
        self._models[kind] = model
        logger.debug("Registered meta owner %s -> %s", kind, model.__name__)
        return kind

    def model_for(self, kind: str) -> type[Any]:
        try:
            return self._models[kind]
        except KeyError:
            msg = f"No model registered for owner type {kind!r}"
            raise UnknownOwnerTypeError(msg) from None

    def kind_for(self, model: type[Any]) -> str:
        for kind, registered in self._models.items():
            if registered is model:
                return kind
        return owner_type_of(model)

    def load(self, session: Session, kind: str, owner_id: str) -> Any | None:
        model = self.model_for(kind)
        pk_col = sa_inspect(model).primary_key[0]
        try:
            ident: Any = pk_col.type.python_type(owner_id)
        except (NotImplementedError, TypeError, ValueError):
            ident = owner_id
        return session.get(model, ident)

    def __contains__(self, kind: object) -> bool:
        return kind in self._models


__all__ = [
    "Metable",
    "OwnerRegistry",
    "native_fields",
    "owner_id_of",
    "owner_type_of",
    "primary_key_attr",
]
