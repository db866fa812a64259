from metable.attachment import MetaAttachment
from metable.cache import ABSENT, CacheStore, InMemoryCacheStore, MetaCache
from metable.codec import ValueCodec
from metable.database.models import MetaRecord, MetaType
from metable.errors import InvalidMetaValueError, MetableError, OwnerNotPersistedError, UnknownOwnerTypeError
from metable.owners import Metable, OwnerRegistry
from metable.query import MISSING
from metable.service import MetaService
from metable.settings import (
    DatabaseConfig,
    MetaConfig,
    MetadataStoreConfig,
    load_meta_config_from_file,
    resolve_meta_config_path,
)

__all__ = [
    "ABSENT",
    "CacheStore",
    "DatabaseConfig",
    "InMemoryCacheStore",
    "InvalidMetaValueError",
    "MISSING",
    "MetaAttachment",
    "MetaCache",
    "MetaConfig",
    "MetaRecord",
    "MetaService",
    "MetaType",
    "Metable",
    "MetableError",
    "MetadataStoreConfig",
    "OwnerNotPersistedError",
    "OwnerRegistry",
    "UnknownOwnerTypeError",
    "ValueCodec",
    "load_meta_config_from_file",
    "resolve_meta_config_path",
]
