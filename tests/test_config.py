"""
Tests for environment-driven settings.
"""
import pydantic
import pytest

from armory.core.config import Settings

REQUIRED = {"database_url": "postgresql://u:p@db:5432/armory", "tripo_api_key": "k"}


def test_defaults():
    settings = Settings(_env_file=None, **REQUIRED)

    assert settings.tripo_base_url == "https://api.tripo3d.ai/v2/openapi"
    assert (settings.host, settings.port) == ("0.0.0.0", 8080)
    assert settings.db_pool_size == 10


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://env/armory")
    monkeypatch.setenv("TRIPO_API_KEY", "from-env")
    monkeypatch.setenv("BIND_ADDR", "127.0.0.1:9000")

    settings = Settings(_env_file=None)

    assert settings.tripo_api_key == "from-env"
    assert (settings.host, settings.port) == ("127.0.0.1", 9000)


def test_requires_database_url_and_api_key(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TRIPO_API_KEY", raising=False)

    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize("bind_addr", ["8080", "localhost:", "localhost:http", "0.0.0.0:70000"])
def test_rejects_invalid_bind_addr(bind_addr):
    with pytest.raises(pydantic.ValidationError, match="Invalid BIND_ADDR"):
        Settings(_env_file=None, bind_addr=bind_addr, **REQUIRED)


def test_async_database_url_uses_asyncpg():
    settings = Settings(_env_file=None, **REQUIRED)

    assert settings.get_async_database_url() == "postgresql+asyncpg://u:p@db:5432/armory"


def test_base_url_trailing_slash_is_dropped():
    settings = Settings(_env_file=None, tripo_base_url="https://tripo.example/v2/", **REQUIRED)

    assert settings.tripo_base_url == "https://tripo.example/v2"
