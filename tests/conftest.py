# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from config import Settings
from main import create_app


@pytest.fixture(scope="function")
def settings():
    """Settings with a fixed secret; nothing is read from the environment."""
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret",
        DATABASE_NAME="course_app_test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture(scope="function")
def db(settings):
    """An in-memory async MongoDB, fresh for every test."""
    return AsyncMongoMockClient()[settings.DATABASE_NAME]


@pytest.fixture(scope="function")
def client(settings, db):
    app = create_app(settings, db=db)
    # Entering the context runs the startup handlers (index creation)
    with TestClient(app) as test_client:
        yield test_client


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client):
    resp = client.post(
        "/admin/signup",
        json={"username": "a", "email": "a@x.com", "password": "p"},
    )
    assert resp.status_code == 201
    return resp.json()["token"]


@pytest.fixture
def user_token(client):
    resp = client.post(
        "/users/signup",
        json={"username": "u", "email": "u@x.com", "password": "pw"},
    )
    assert resp.status_code == 201
    return resp.json()["token"]


@pytest.fixture
def course_id(client, admin_token):
    resp = client.post(
        "/admin/courses",
        json={"title": "Intro", "price": 10},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 201
    return resp.json()["id"]
