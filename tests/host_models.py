from __future__ import annotations

from sqlmodel import Field, SQLModel

from metable import Metable


class Post(Metable, SQLModel, table=True):
    __tablename__ = "posts"

    id: int | None = Field(default=None, primary_key=True)
    title: str = ""


class Page(Metable, SQLModel, table=True):
    __tablename__ = "pages"
    __meta_owner_type__ = "page"
    __meta_native_fields__ = frozenset({"headline"})

    id: int | None = Field(default=None, primary_key=True)
    name: str = ""

    @property
    def headline(self) -> str:
        return self.name.upper()
