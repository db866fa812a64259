from datetime import date, datetime
from decimal import Decimal

import pendulum
import pytest

from metable import InvalidMetaValueError, MetaService, OwnerNotPersistedError

from host_models import Page, Post


def test_translation_bundle_scenario(post) -> None:
    post.set_meta("title", {"en": "Hello", "ar": "مرحبا"})

    assert post.get_meta("title", None, "en") == "Hello"
    assert post.get_meta("title", None, "ar") == "مرحبا"


def test_number_scenario(post) -> None:
    record = post.set_meta("views", 123)

    assert record.type == "number"
    assert post.get_meta("views") == 123


def test_typed_roundtrips(post) -> None:
    when = pendulum.datetime(2024, 5, 1, 9, 15, tz="Europe/Paris")
    big = Decimal("3.141592653589793238462643383279502884")
    payload = {"tags": ["a", "b"], "score": 1}

    post.sync_meta({"published": True, "launch": when, "pi": big, "extra": payload, "note": "hi"})

    assert post.get_meta("published") is True
    assert post.get_meta("launch") == when
    assert post.get_meta("pi") == big
    assert post.get_meta("extra") == payload
    assert post.get_meta("note") == "hi"


def test_set_then_get_sees_new_value(post) -> None:
    post.set_meta("status", "draft")
    assert post.get_meta("status") == "draft"

    post.set_meta("status", "published")
    assert post.get_meta("status") == "published"


def test_type_change_on_update(post, service: MetaService) -> None:
    post.set_meta("flag", "yes")
    record = post.set_meta("flag", False)

    assert record.type == "boolean"
    assert post.get_meta("flag") is False
    assert len(post.metas()) == 1


def test_forget_meta_returns_default(post) -> None:
    post.set_meta("color", "red")
    assert post.get_meta("color") == "red"

    post.forget_meta("color")

    assert post.get_meta("color", "none") == "none"
    assert post.metas() == []


def test_missing_meta_uses_callers_default(post) -> None:
    assert post.get_meta("nothing") is None
    assert post.get_meta("nothing", "first") == "first"
    assert post.get_meta("nothing", "second") == "second"


def test_sync_meta_matches_sequential_sets(service: MetaService) -> None:
    a = service.attach(Post(title="a"))
    a.save()
    b = service.attach(Post(title="b"))
    b.save()

    a.sync_meta({"a": 1, "b": 2})
    b.set_meta("a", 1)
    b.set_meta("b", 2)

    assert a.all_meta() == b.all_meta() == {"a": 1, "b": 2}


def test_has_meta_reports_cache_only(post) -> None:
    post.set_meta("tagline", "fast")
    assert post.has_meta("tagline") is False

    post.get_meta("tagline")
    assert post.has_meta("tagline") is True
    assert post.has_meta("tagline", "ar") is False


def test_write_invalidates_every_locale(post) -> None:
    post.set_meta("title", {"en": "Hello", "ar": "مرحبا"})
    post.get_meta("title", locale="en")
    post.get_meta("title", locale="ar")
    assert post.has_meta("title", "en") and post.has_meta("title", "ar")

    post.set_meta("title", "Updated", "en")

    assert not post.has_meta("title", "en")
    assert not post.has_meta("title", "ar")
    assert post.get_meta("title", locale="en") == "Updated"
    assert post.get_meta("title", locale="ar") == "مرحبا"


def test_flush_meta_cache_covers_unread_keys(post) -> None:
    post.sync_meta({"a": "x", "b": "y"})
    post.get_meta("a")
    assert post.has_meta("a")

    post.flush_meta_cache()

    assert not post.has_meta("a")
    assert post.get_meta("b") == "y"


def test_metas_are_scoped_per_owner(service: MetaService) -> None:
    post = service.attach(Post(title="p"))
    post.save()
    page = service.attach(Page(name="p"))
    page.save()
    assert post.owner_id == page.owner_id

    post.set_meta("color", "red")
    page.set_meta("color", "blue")

    assert post.get_meta("color") == "red"
    assert page.get_meta("color") == "blue"
    assert page.metas()[0].owner_type == "page"


def test_set_meta_requires_persisted_owner(service: MetaService) -> None:
    draft = service.attach(Post(title="draft"))

    with pytest.raises(OwnerNotPersistedError):
        draft.set_meta("color", "red")
    assert draft.get_meta("color", "fallback") == "fallback"
    assert draft.has_meta("color") is False


def test_invalid_date_propagates(post) -> None:
    with pytest.raises(InvalidMetaValueError):
        post.set_meta("launch", "someday", as_type="date")
    assert post.metas() == []


def test_owner_of_resolves_polymorphic_owner(service: MetaService, post) -> None:
    record = post.set_meta("color", "red")

    owner = service.owner_of(record)

    assert isinstance(owner, Post)
    assert owner.id == post.owner.id
    assert owner.title == "Hello"


def test_delete_cascades_meta(service: MetaService) -> None:
    keep = service.attach(Post(title="keep"))
    keep.save()
    gone = service.attach(Post(title="gone"))
    gone.save()
    keep.set_meta("color", "red")
    gone.sync_meta({"color": "blue", "size": 3})
    gone.get_meta("color")
    gone_id = gone.owner_id

    gone.delete()

    assert service.repo.list_keys("posts", gone_id) == set()
    assert not service.cache.has("posts", gone_id, "color")
    assert keep.get_meta("color") == "red"
    assert service.find_owners(Post, Post.id == int(gone_id)) == []


def test_write_under_unlisted_locale_is_visible(post) -> None:
    post.set_meta("tagline", "one", "fr")
    assert post.get_meta("tagline", locale="fr") == "one"

    post.set_meta("tagline", "two", "fr")

    assert post.get_meta("tagline", locale="fr") == "two"


def test_type_change_clears_unlisted_locale(post) -> None:
    post.set_meta("tagline", "one", "fr")
    assert post.get_meta("tagline", locale="fr") == "one"

    post.set_meta("tagline", 7)

    assert post.get_meta("tagline", locale="fr") == 7


def test_value_kinds_survive_storage(post) -> None:
    naive = datetime(2024, 1, 1, 12, 30)
    post.sync_meta({"naive": naive, "day": date(2024, 1, 1), "ratio": 0.25})

    assert post.get_meta("naive") == naive
    assert post.get_meta("naive").tzinfo is None
    assert post.get_meta("day") == date(2024, 1, 1)
    assert not isinstance(post.get_meta("day"), datetime)
    assert post.get_meta("ratio") == 0.25
    assert isinstance(post.get_meta("ratio"), float)


def test_json_with_decimals_and_dates_is_stored(post) -> None:
    post.set_meta("extra", {"price": Decimal("1.50"), "when": date(2024, 1, 1)})

    assert post.get_meta("extra") == {"price": "1.50", "when": "2024-01-01"}
