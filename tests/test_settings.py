"""
Tests for ingestion/settings.py — engine settings from the environment.

load_dotenv() is patched out so a developer's local .env cannot leak in.
"""

from unittest.mock import patch

import pytest

from ingestion.settings import DEFAULT_MAX_WORKERS, EngineSettings, load_engine_settings

_ENV_VARS = ("ANALYSIS_MAX_WORKERS", "AUDIO_MAX_DURATION", "AUDIO_TARGET_SR")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch("ingestion.settings.load_dotenv") as mock_load:
        yield mock_load


class TestLoadEngineSettings:
    def test_defaults(self):
        settings = load_engine_settings()
        assert settings.max_workers == DEFAULT_MAX_WORKERS
        assert settings.max_duration is None
        assert settings.target_sr is None

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("ANALYSIS_MAX_WORKERS", "8")
        monkeypatch.setenv("AUDIO_MAX_DURATION", "120.5")
        monkeypatch.setenv("AUDIO_TARGET_SR", "22050")
        settings = load_engine_settings()
        assert settings.max_workers == 8
        assert settings.max_duration == 120.5
        assert settings.target_sr == 22050

    def test_blank_optional_values_mean_unset(self, monkeypatch):
        monkeypatch.setenv("AUDIO_MAX_DURATION", "  ")
        assert load_engine_settings().max_duration is None

    def test_calls_load_dotenv(self, _clean_env):
        load_engine_settings()
        _clean_env.assert_called_once()

    def test_non_numeric_raises(self, monkeypatch):
        monkeypatch.setenv("ANALYSIS_MAX_WORKERS", "many")
        with pytest.raises(ValueError):
            load_engine_settings()


class TestEngineSettingsValidation:
    def test_zero_workers_raises(self):
        with pytest.raises(ValueError, match="max_workers"):
            EngineSettings(max_workers=0)

    def test_non_positive_duration_raises(self):
        with pytest.raises(ValueError, match="max_duration"):
            EngineSettings(max_duration=0.0)

    def test_non_positive_sample_rate_raises(self):
        with pytest.raises(ValueError, match="target_sr"):
            EngineSettings(target_sr=-1)
