from metable.database.factory import build_database
from metable.database.interfaces import Database
from metable.database.models import META_TYPES, MetaRecord, MetaType

__all__ = ["META_TYPES", "Database", "MetaRecord", "MetaType", "build_database"]
