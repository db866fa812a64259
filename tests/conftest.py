from __future__ import annotations

import pytest

from metable import MetaService

from host_models import Page, Post


@pytest.fixture
def meta_config() -> dict:
    return {"supported_locales": ["ar", "en"], "default_locale": "en"}


@pytest.fixture
def service(meta_config: dict):
    svc = MetaService(
        meta_config=meta_config,
        database_config={"metadata_store": {"provider": "sqlite", "dsn": "sqlite://"}},
        owners=[Post, Page],
    )
    yield svc
    svc.close()


@pytest.fixture
def post(service: MetaService):
    attachment = service.attach(Post(title="Hello"))
    attachment.save()
    return attachment
