# SPDX-License-Identifier: Apache-2.0
"""pytest fixtures for backend tests."""
import itertools

import pytest
from fastapi.testclient import TestClient

from campusconnect.config import settings
from campusconnect.core.auth import create_access_token, hash_password
from campusconnect.core.security import get_limiter
from campusconnect.database import Store
from campusconnect.main import create_app
from campusconnect.models import User
from campusconnect.services.connection_service import ConnectionGraph

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Fresh SQLite file per test; uploads land under tmp_path too."""
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    store = Store(f"sqlite:///{tmp_path / 'campusconnect.db'}")
    store.create_all()
    yield store
    store.dispose()


@pytest.fixture
def client(store):
    """FastAPI test client bound to the per-test store, rate limiting off."""
    limiter = get_limiter()
    limiter.enabled = False
    with TestClient(create_app(store)) as c:
        yield c
    limiter.enabled = True


@pytest.fixture
def make_user(store):
    """Insert a user directly. Verified with a completed profile unless told otherwise."""
    counter = itertools.count(1)

    def _make(name=None, email=None, verified=True, profiled=True):
        n = next(counter)
        user = User(
            name=name or f"Student {n}",
            email=email or f"student{n}@campus.edu",
            password_hash=PASSWORD_HASH,
            is_verified=verified,
            branch="CSE" if profiled else None,
            year="3" if profiled else None,
            profile_completed=profiled,
        )
        with store.transaction() as session:
            session.add(user)
            session.flush()
            session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth():
    """Bearer header for a user."""
    def _auth(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth


@pytest.fixture
def connect(store):
    """Make two users connected (request + accept)."""
    def _connect(a, b):
        graph = ConnectionGraph(store)
        connection = graph.request(a.id, b.id)
        return graph.accept(connection.id, b.id)

    return _connect
