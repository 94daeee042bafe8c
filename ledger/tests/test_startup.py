# ledger/tests/test_startup.py
# Tests that startup fails fast on missing configuration or an unreachable database

import pytest
from pydantic import ValidationError

from ledger.config import Settings
from ledger.errors import ConfigurationError
from ledger.main import create_app
from ledger.models import Database

from .conftest import make_settings

UNREACHABLE_DB = "sqlite:////nonexistent-dir/ledger.db"


@pytest.mark.parametrize("missing", ["JWT_SECRET", "DATABASE_URL"])
def test_settings_require_secret_and_database(monkeypatch, missing):
    monkeypatch.setenv("JWT_SECRET", "env-secret")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.delenv(missing)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "env-secret")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")

    settings = Settings(_env_file=None)
    assert settings.jwt_secret == "env-secret"
    assert settings.database_url == "sqlite://"


def test_empty_database_url_is_configuration_error():
    with pytest.raises(ConfigurationError):
        Database("")


def test_unreachable_database_fails_connect():
    database = Database(UNREACHABLE_DB)
    try:
        with pytest.raises(ConfigurationError):
            database.connect()
    finally:
        database.dispose()


def test_app_does_not_start_without_database():
    with pytest.raises(ConfigurationError):
        create_app(make_settings(database_url=UNREACHABLE_DB))
