"""Tests for environment-driven settings and logging setup."""

import pytest
import structlog
from pydantic import ValidationError

from tablecache.core.config import CacheSettings
from tablecache.core.logging import configure_logging, get_logger, log_cache_operation


class TestCacheSettings:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        settings = CacheSettings()
        assert settings.allow_null_values is False
        assert settings.default_ttl is None
        assert settings.background_cleanup_enabled is False
        assert settings.is_sqlite

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TABLECACHE_DEFAULT_TTL", "30")
        monkeypatch.setenv("TABLECACHE_ALLOW_NULL_VALUES", "true")
        monkeypatch.setenv("TABLECACHE_LOG_LEVEL", "debug")
        settings = CacheSettings()
        assert settings.default_ttl == 30
        assert settings.allow_null_values is True
        assert settings.log_level == "DEBUG"

    def test_invalid_values(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'c.db'}"
        with pytest.raises(ValidationError):
            CacheSettings(database_url=url, default_ttl=0)
        with pytest.raises(ValidationError):
            CacheSettings(database_url=url, log_level="LOUD")
        with pytest.raises(ValidationError):
            CacheSettings(database_url=url, log_format="xml")

    def test_sqlite_directory_is_created(self, tmp_path):
        target = tmp_path / "nested" / "dir" / "cache.db"
        CacheSettings(database_url=f"sqlite+aiosqlite:///{target}")
        assert target.parent.is_dir()

    def test_postgres_url(self):
        settings = CacheSettings(database_url="postgresql+asyncpg://u:p@localhost/cache")
        assert not settings.is_sqlite


class TestLogging:
    def test_configure_and_log(self, make_settings):
        configure_logging(make_settings(log_level="DEBUG", log_format="json"))
        try:
            assert structlog.is_configured()
            logger = get_logger("tests")
            log_cache_operation(logger, "get", "user:1", hit=True)
        finally:
            structlog.reset_defaults()
