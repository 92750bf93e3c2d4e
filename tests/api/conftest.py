# tests/api/conftest.py
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from readingnook.api.main import app
from readingnook.clients.aladin import get_catalog
from readingnook.db.session import get_db


class FakeCatalog:
    """Stands in for the Aladin gateway; records the queries it receives."""

    def __init__(self):
        self.search_results = []
        self.bestseller_results = []
        self.new_arrival_results = []
        self.error = None
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return list(self.search_results)

    async def bestsellers(self):
        if self.error:
            raise self.error
        return list(self.bestseller_results)

    async def new_arrivals(self):
        if self.error:
            raise self.error
        return list(self.new_arrival_results)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def client(db_session, catalog):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_headers():
    def _make_headers(user_id, email=None, nickname=None):
        headers = {"X-User-Id": user_id}
        if email:
            headers["X-User-Email"] = email
        if nickname:
            # Non-ASCII header values travel percent-encoded.
            headers["X-User-Nickname"] = quote(nickname)
        return headers
    return _make_headers


@pytest.fixture
def headers(make_headers):
    return make_headers("user-1", "reader1@example.com", "책벌레")


@pytest.fixture
def other_headers(make_headers):
    return make_headers("user-2", "reader2@example.com")
