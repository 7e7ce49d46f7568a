import os
import sys
from pathlib import Path

# Project root first on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Point the app at SQLite BEFORE importing it
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SEED_EXAMPLE_TASKS"] = "false"

import pytest
from fastapi.testclient import TestClient

from taskflow.core.database import Base, SessionLocal, engine
from taskflow.main import app


@pytest.fixture(autouse=True)
def setup_teardown():
    """Fresh schema for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_user(client):
    """Register + login a user; returns a dict with id, email, headers and default workspace id."""

    def _make_user(email: str, name: str = None, password: str = "secret123"):
        response = client.post(
            "/auth/register",
            json={"email": email, "name": name or email.split("@")[0].title(), "password": password}
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["id"]

        login = client.post("/auth/login", json={"email": email, "password": password})
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        workspaces = client.get("/workspaces", headers=headers).json()
        default_id = next(w["id"] for w in workspaces if w["is_default"])
        return {"id": user_id, "email": email, "headers": headers, "workspace_id": default_id}

    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com", "Alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com", "Bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol@example.com", "Carol")
