from metable.database.repositories.meta import MetaRepo

__all__ = ["MetaRepo"]
