"""Shared fixtures: a fresh SQLite file per test."""

import pytest
from fastapi.testclient import TestClient

from msgboard.config import Settings
from msgboard.main import create_app
from msgboard.service import MessageService
from msgboard.storage import MessageStore, make_engine


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'messages.db'}",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def store(settings):
    store = MessageStore(make_engine(settings))
    store.init_db()
    yield store
    store.dispose()


@pytest.fixture
def service(store):
    return MessageService(store, max_text_length=20)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client
