from __future__ import annotations


class MetableError(Exception):
    """Base class for metadata errors."""


class InvalidMetaValueError(MetableError, ValueError):
    """A value could not be coerced into its storage slot."""


class OwnerNotPersistedError(MetableError, RuntimeError):
    """Metadata was written for an owner that has no primary key yet."""


class UnknownOwnerTypeError(MetableError, KeyError):
    """No model is registered for an owner type."""


__all__ = [
    "InvalidMetaValueError",
    "MetableError",
    "OwnerNotPersistedError",
    "UnknownOwnerTypeError",
]
