"""
Shared fixtures: an application backed by a throwaway SQLite file.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from services.catalog_service import CatalogService

JWT_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"
ROOT_USER = "root"
ROOT_PASS = "root-password"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'store.db'}",
        jwt_secret=JWT_SECRET,
        root_user=ROOT_USER,
        root_pass=ROOT_PASS,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Client with the lifespan running, so tables and the root admin exist."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def db(app, client):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def other_db(app, client):
    """A second, independent session for interleaving tests."""
    session = app.state.session_factory()
    yield session
    session.close()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def signup_and_login(client):
    """Create a user over the API and return (user_json, headers)."""

    def _signup_and_login(username="alice", password="pw1"):
        response = client.post("/user/signup", json={"user": username, "password": password})
        assert response.status_code == 200, response.text
        user = response.json()

        response = client.post("/user/login", json={"user": username, "password": password})
        assert response.status_code == 200, response.text
        return user, bearer(response.json()["auth_token"])

    return _signup_and_login


@pytest.fixture
def admin_headers(client):
    response = client.post("/admin/login", json={"user": ROOT_USER, "password": ROOT_PASS})
    assert response.status_code == 200, response.text
    return bearer(response.json()["auth_token"])


@pytest.fixture
def make_item(db):
    """Insert a catalog item directly and return it."""
    catalog = CatalogService()

    def _make_item(name="widget", price="10.00", description=""):
        return catalog.create_item(db, name, description, Decimal(price))

    return _make_item
