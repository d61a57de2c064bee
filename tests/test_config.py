"""Tests for line_of_sight.config."""

from pathlib import Path

import pytest

from line_of_sight.config import DEFAULT_CACHE_ROOT, configure_logging, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "LOS_TILE_SOURCE",
        "LOS_CACHE_DIR",
        "LOS_MEMORY_CACHE_TILES",
        "LOS_REQUEST_TIMEOUT",
        "LOS_RESOURCE_TIMEOUT",
        "LOS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults(self):
        settings = load_settings()
        assert settings.tile_source == "mapzen"
        assert settings.cache_dir == DEFAULT_CACHE_ROOT / "mapzen"
        assert settings.memory_cache_tiles == 20
        assert settings.request_timeout_s == 60.0
        assert settings.resource_timeout_s == 300.0
        assert settings.log_level == "INFO"

    def test_source_selects_cache_subdir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOS_TILE_SOURCE", "3dep")
        monkeypatch.setenv("LOS_CACHE_DIR", str(tmp_path))
        settings = load_settings()
        assert settings.tile_source == "3dep"
        assert settings.cache_dir == Path(tmp_path) / "3dep"

    def test_unknown_source_raises(self, monkeypatch):
        monkeypatch.setenv("LOS_TILE_SOURCE", "nonexistent")
        with pytest.raises(ValueError, match="Unknown tile source"):
            load_settings()

    def test_numeric_overrides(self, monkeypatch):
        monkeypatch.setenv("LOS_MEMORY_CACHE_TILES", "5")
        monkeypatch.setenv("LOS_REQUEST_TIMEOUT", "12.5")
        settings = load_settings()
        assert settings.memory_cache_tiles == 5
        assert settings.request_timeout_s == 12.5

    def test_invalid_number_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("LOS_MEMORY_CACHE_TILES", "lots")
        settings = load_settings()
        assert settings.memory_cache_tiles == 20
        assert "LOS_MEMORY_CACHE_TILES" in caplog.text

    def test_non_positive_number_falls_back(self, monkeypatch):
        monkeypatch.setenv("LOS_RESOURCE_TIMEOUT", "-1")
        assert load_settings().resource_timeout_s == 300.0

    def test_log_level_uppercased(self, monkeypatch):
        monkeypatch.setenv("LOS_LOG_LEVEL", "debug")
        assert load_settings().log_level == "DEBUG"


class TestConfigureLogging:
    def test_accepts_explicit_settings(self, settings):
        configure_logging(settings)
