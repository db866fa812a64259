from sqlmodel import Field, SQLModel

from metable import Metable, MetaService


class Article(Metable, SQLModel, table=True):
    __tablename__ = "articles"

    id: int | None = Field(default=None, primary_key=True)
    slug: str


def main() -> None:
    service = MetaService(
        meta_config={"supported_locales": ["ar", "en"], "default_locale": "en"},
        database_config={"metadata_store": {"provider": "sqlite", "dsn": "sqlite://"}},
        owners=[Article],
    )

    # 属性写入在保存前只排队
    article = service.attach(Article(slug="hello"))
    article.status = "draft"
    article.save()

    article.set_meta("title", {"en": "Hello", "ar": "مرحبا"})
    article.sync_meta({"views": 123, "featured": True})

    other = service.attach(Article(slug="news"))
    other.save()
    other.sync_meta({"status": "published", "views": 7})

    print("title(en):", article.get_meta("title"))
    print("title(ar):", article.get_meta("title", locale="ar"))
    print("all:", article.all_meta())

    popular = service.find_owners(Article, service.where_meta(Article, "views", ">", 100))
    listed = service.find_owners(Article, service.where_meta_in(Article, "status", ["draft", "published"]))
    print("popular:", [a.slug for a in popular])
    print("listed:", [a.slug for a in listed])

    other.delete()
    print("remaining:", [a.slug for a in service.find_owners(Article)])
    service.close()


if __name__ == "__main__":
    main()
