# ledger/tests/conftest.py
# Test configuration and fixtures for pytest

import pytest
from fastapi.testclient import TestClient

from ledger.config import Settings
from ledger.main import create_app
from ledger.models import Database

TEST_SECRET = "test-secret-key"


def make_settings(**overrides) -> Settings:
    """Explicit settings so tests never depend on the environment or a .env file."""
    values = {
        "jwt_secret": TEST_SECRET,
        "database_url": "sqlite://",
        "bcrypt_rounds": 4,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture(scope="function")
def database():
    """A fresh in-memory database per test."""
    db = Database("sqlite://")
    db.connect()
    yield db
    db.dispose()


@pytest.fixture(scope="function")
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def app(settings, database):
    return create_app(settings, database=database)


@pytest.fixture(scope="function")
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup(client):
    """Sign a user up and return (token, headers)."""

    def _signup(email="a@x.com", password="pw123456", **extra):
        response = client.post("/signup", json={"email": email, "password": password, **extra})
        assert response.status_code == 201, response.text
        token = response.json()["token"]
        return token, {"Authorization": f"Bearer {token}"}

    return _signup


@pytest.fixture
def auth_headers(signup):
    _, headers = signup()
    return headers
