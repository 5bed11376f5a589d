"""Unit tests for core.config module.

Tests cover:
- Settings defaults
- model_validator checks
- is_sqlite property
- get_settings / clear_settings_cache lru_cache behavior
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, clear_settings_cache, get_settings


@pytest.mark.unit
class TestSettingsDefaults:
    def test_body_limit_defaults_to_100_kib(self):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        assert settings.max_body_size == 100 * 1024

    def test_store_preload_disabled_by_default(self):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        assert settings.store_preload is False

    def test_settings_are_frozen(self):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        with pytest.raises(ValidationError):
            settings.debug = True


@pytest.mark.unit
class TestSettingsValidation:
    def test_requires_database_config(self):
        with pytest.raises(ValidationError, match="Database configuration"):
            Settings(database_url="")

    def test_rejects_non_positive_body_limit(self):
        with pytest.raises(ValidationError, match="MAX_BODY_SIZE"):
            Settings(database_url="sqlite+aiosqlite:///:memory:", max_body_size=0)

    def test_rejects_non_positive_cache_size(self):
        with pytest.raises(ValidationError, match="STORE_CACHE_SIZE"):
            Settings(database_url="sqlite+aiosqlite:///:memory:", store_cache_size=-1)


@pytest.mark.unit
class TestIsSqlite:
    def test_sqlite_url(self):
        assert Settings(database_url="sqlite+aiosqlite:///./x.db").is_sqlite is True

    def test_postgres_url(self):
        settings = Settings(database_url="postgresql+asyncpg://localhost/test")
        assert settings.is_sqlite is False


@pytest.mark.unit
class TestGetSettings:
    def test_returns_cached_instance(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache_reads_environment_again(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("MAX_BODY_SIZE", "2048")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.max_body_size == 2048
