from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from auctionhouse.api import app, get_db
from auctionhouse.config import get_settings
from auctionhouse.db import AuctionDB


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """Cheap bcrypt rounds, fresh settings cache per test."""
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return AuctionDB(AsyncMongoMockClient(), "auctionhouse_test")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_db] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def future():
    return datetime.now(timezone.utc) + timedelta(days=1)


@pytest.fixture
def past():
    return datetime.now(timezone.utc) - timedelta(days=1)
