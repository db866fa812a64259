import pendulum
import pytest

from metable import MetaService

from host_models import Page, Post


@pytest.fixture
def posts(service: MetaService) -> dict:
    made = {}
    for title, status, views in (("a", "draft", 5), ("b", "published", 50), ("c", "archived", 500)):
        post = service.attach(Post(title=title))
        post.save()
        post.sync_meta({"status": status, "views": views})
        made[title] = post
    made["a"].set_meta("headline", {"en": "Hello World", "ar": "مرحبا بالعالم"})
    made["b"].set_meta("launch", pendulum.datetime(2024, 1, 1, tz="UTC"))
    made["c"].set_meta("launch", pendulum.datetime(2025, 1, 1, tz="UTC"))
    return made


def _titles(service: MetaService, *clauses) -> list[str]:
    return sorted(p.title for p in service.find_owners(Post, *clauses))


def test_where_meta_two_argument_form(service: MetaService, posts) -> None:
    assert _titles(service, service.where_meta(Post, "status", "draft")) == ["a"]


def test_where_meta_with_operator(service: MetaService, posts) -> None:
    assert _titles(service, service.where_meta(Post, "views", ">", 10)) == ["b", "c"]
    assert _titles(service, service.where_meta(Post, "views", "<=", 50)) == ["a", "b"]
    assert _titles(service, service.where_meta(Post, "status", "!=", "draft")) == ["b", "c"]


def test_where_meta_on_dates(service: MetaService, posts) -> None:
    cutoff = pendulum.datetime(2024, 6, 1, tz="UTC")
    assert _titles(service, service.where_meta(Post, "launch", ">", cutoff)) == ["c"]


def test_where_meta_in(service: MetaService, posts) -> None:
    clause = service.where_meta_in(Post, "status", ["draft", "published"])
    assert _titles(service, clause) == ["a", "b"]


def test_where_meta_in_empty_matches_nothing(service: MetaService, posts) -> None:
    assert _titles(service, service.where_meta_in(Post, "status", [])) == []


def test_where_meta_like_matches_translations(service: MetaService, posts) -> None:
    assert _titles(service, service.where_meta_like(Post, "headline", "Hello%")) == ["a"]
    assert _titles(service, service.where_meta_like(Post, "headline", "%بالعالم")) == ["a"]
    assert _titles(service, service.where_meta_like(Post, "headline", "Goodbye%")) == []


def test_where_meta_uses_requested_locale(service: MetaService, posts) -> None:
    clause = service.where_meta(Post, "headline", "مرحبا بالعالم", locale="ar")
    assert _titles(service, clause) == ["a"]
    assert _titles(service, service.where_meta(Post, "headline", "مرحبا بالعالم")) == []


def test_predicates_are_scoped_to_owner_type(service: MetaService, posts) -> None:
    page = service.attach(Page(name="home"))
    page.save()
    page.set_meta("status", "draft")

    assert _titles(service, service.where_meta(Post, "status", "draft")) == ["a"]
    pages = service.find_owners(Page, service.where_meta(Page, "status", "draft"))
    assert [p.name for p in pages] == ["home"]


def test_unknown_operator_rejected(service: MetaService) -> None:
    with pytest.raises(ValueError):
        service.where_meta(Post, "views", "~", 3)


def test_structured_values_rejected(service: MetaService) -> None:
    with pytest.raises(TypeError):
        service.where_meta(Post, "extra", {"a": 1})


def test_where_meta_like_matches_escaped_translations(service: MetaService, posts) -> None:
    posts["b"].set_meta("motto", {"en": 'Say "hi"', "ar": "a\\b!"})

    assert _titles(service, service.where_meta_like(Post, "motto", 'Say "hi"')) == ["b"]
    assert _titles(service, service.where_meta_like(Post, "motto", '%"hi"')) == ["b"]
    assert _titles(service, service.where_meta_like(Post, "motto", "a\\b!")) == ["b"]
    assert _titles(service, service.where_meta_like(Post, "motto", "a\\c!")) == []
