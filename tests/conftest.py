"""Shared pytest fixtures: an app on a throwaway SQLite file and a mocked Google Books."""

import os
import tempfile

# Settings are read at import time
_MEDIA_DIR = tempfile.mkdtemp(prefix="bookquest-media-")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = _MEDIA_DIR
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_MEDIA_DIR, "unused.db")

import httpx
import pytest
from fastapi.testclient import TestClient

from bookquest import models
from bookquest.google_books_client import GoogleBooksClient, get_google_books_client
from bookquest.main import create_app

PASSWORD = "Secret123"


@pytest.fixture
def media_dir() -> str:
    return _MEDIA_DIR


@pytest.fixture
def app(tmp_path):
    app = create_app(f"sqlite:///{tmp_path / 'bookquest.db'}")
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Sign up and log in a user; returns (user dict, auth headers)."""

    def _register(email="reader@example.com", name="Reader"):
        response = client.post(
            "/auth/signup", json={"email": email, "password": PASSWORD, "name": name}
        )
        assert response.status_code == 201, response.text
        login = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert login.status_code == 200, login.text
        token = login.json()["authToken"]
        return response.json()["user"], {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture
def auth_headers(register) -> dict:
    _, headers = register()
    return headers


@pytest.fixture
def admin(app, client, register):
    """A user promoted to admin directly in the database; returns (user, headers)."""
    user, _ = register(email="admin@example.com", name="Admin")
    db = app.state.database.session()
    try:
        db.query(models.User).filter(models.User.id == user["id"]).update(
            {"role": models.ROLE_ADMIN}
        )
        db.commit()
    finally:
        db.close()
    # Log in again so the token carries the new role
    login = client.post("/auth/login", json={"email": "admin@example.com", "password": PASSWORD})
    return user, {"Authorization": f"Bearer {login.json()['authToken']}"}


@pytest.fixture
def mock_google_books(app):
    """Route Google Books requests to ``handler`` instead of the network."""

    def _install(handler, batches=10, max_retries=2):
        async def override():
            async with GoogleBooksClient(
                transport=httpx.MockTransport(handler),
                max_retries=max_retries,
                retry_delay=0,
                batches=batches,
            ) as google_client:
                yield google_client

        app.dependency_overrides[get_google_books_client] = override

    return _install
