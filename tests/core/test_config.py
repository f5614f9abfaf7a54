"""
Tests for config.py - environment-driven configuration.
"""
from pathlib import Path

import pytest

import config
from config import (
    DEFAULT_CLASSICAL_DATA,
    BookSourceConfig,
    Environment,
    YaoConfig,
    get_config,
    reset_config,
)
from core.errors import ConfigError


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


class TestDefaults:
    def test_book_defaults(self, monkeypatch):
        for key in ("YAO_BOOK_API_URL", "YAO_BOOK_LIST_TTL", "YAO_BOOK_CACHE_TTL", "YAO_CLASSICAL_DATA_PATH"):
            monkeypatch.delenv(key, raising=False)
        books = BookSourceConfig()
        assert books.api_url == ""
        assert books.list_ttl_seconds == 300
        assert books.book_ttl_seconds == 0
        assert books.classical_data_path == DEFAULT_CLASSICAL_DATA

    def test_bundled_dataset_exists(self):
        assert DEFAULT_CLASSICAL_DATA.exists()

    def test_default_config_is_valid(self, monkeypatch):
        monkeypatch.delenv("YAO_CLASSICAL_DATA_PATH", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "info")
        assert YaoConfig().validate() == []


class TestEnvironment:
    def test_values_read_from_env(self, monkeypatch):
        monkeypatch.setenv("YAO_BOOK_API_URL", "https://books.example.org")
        monkeypatch.setenv("YAO_BOOK_LIST_TTL", "60")
        monkeypatch.setenv("ENVIRONMENT", "production")

        cfg = YaoConfig()
        assert cfg.books.api_url == "https://books.example.org"
        assert cfg.books.list_ttl_seconds == 60.0
        assert cfg.env is Environment.PRODUCTION
        assert cfg.is_production

    @pytest.mark.parametrize("key", ["YAO_BOOK_LIST_TTL", "YAO_BOOK_API_TIMEOUT"])
    def test_non_numeric_value(self, monkeypatch, key):
        monkeypatch.setenv(key, "soon")
        with pytest.raises(ConfigError) as exc_info:
            BookSourceConfig()
        assert exc_info.value.config_key == key
        assert exc_info.value.actual_value == "soon"

    def test_non_integer_cache_size(self, monkeypatch):
        monkeypatch.setenv("YAO_CACHE_MAX_ENTRIES", "1.5")
        with pytest.raises(ConfigError):
            BookSourceConfig()


class TestValidate:
    def test_problems_reported(self, monkeypatch, tmp_path):
        monkeypatch.setenv("YAO_BOOK_LIST_TTL", "-1")
        monkeypatch.setenv("YAO_BOOK_API_TIMEOUT", "0")
        monkeypatch.setenv("YAO_CLASSICAL_DATA_PATH", str(tmp_path / "none.json"))
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        problems = YaoConfig().validate()
        assert len(problems) == 4
        assert any("YAO_BOOK_LIST_TTL" in problem for problem in problems)
        assert any("classical dataset" in problem for problem in problems)

    def test_to_dict(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://user:secret@db/yao")
        payload = YaoConfig().to_dict()
        assert "database" not in payload
        assert "secret" not in str(payload)
        assert payload["observability"]["service_name"]


class TestSingleton:
    def test_get_config_cached(self):
        assert get_config() is get_config()

    def test_reset_config(self, monkeypatch):
        first = get_config()
        reset_config()
        assert get_config() is not first

    def test_reload_config_reads_env(self, monkeypatch):
        monkeypatch.setattr(config, "load_dotenv", lambda override=True: False)
        get_config()
        monkeypatch.setenv("YAO_BOOK_LIST_TTL", "42")
        assert config.reload_config().books.list_ttl_seconds == 42.0
        assert isinstance(get_config().books.classical_data_path, Path)
