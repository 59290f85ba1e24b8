"""
Shared fixtures: a throwaway SQLite storage, an in-memory session store,
and an app/client wired to both.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient

from connectx.config import Settings
from connectx.core.security import get_password_hash
from connectx.core.sessions import MemorySessionStore
from connectx.main import create_app
from connectx.schemas.user import UserCreate
from connectx.storage import Storage


@pytest.fixture
def storage(tmp_path):
    """Storage on a fresh SQLite file."""
    store = Storage.from_url(f"sqlite:///{tmp_path / 'connectx-test.db'}")
    store.create_all()
    yield store
    store.dispose()


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret-key",
        DATABASE_URL=f"sqlite:///{tmp_path / 'unused.db'}",
        SESSION_PRUNE_INTERVAL_SECONDS=3600,
    )


@pytest.fixture
def app(settings, storage, session_store):
    return create_app(settings=settings, storage=storage, session_store=session_store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(storage):
    """Create a user straight through storage; password is 'secret1' unless given."""

    def _make_user(username: str, password: str = "secret1", **extra):
        user_in = UserCreate(
            username=username,
            email=extra.pop("email", f"{username}@example.com"),
            password=password,
            **extra,
        )
        return storage.create_user(user_in, password_hash=get_password_hash(password))

    return _make_user


def register(client: TestClient, username: str, password: str = "secret1", **extra) -> str:
    """Register through the API and return the bearer token."""
    payload = {
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
        **extra,
    }
    response = client.post("/api/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["accessToken"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
