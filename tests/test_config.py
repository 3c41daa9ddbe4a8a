"""Tests for hunkstack.config module."""

import pytest

import hunkstack.config as config
from hunkstack.config import (
    API_KEY_ENV_VARS,
    AVAILABLE_MODELS,
    DEFAULT_MODEL,
    DEFAULT_PROVIDER,
    LLMProvider,
    load_config,
)
from hunkstack.global_config import GlobalConfigError


@pytest.fixture
def active_config(monkeypatch):
    """Restore the active configuration after each test."""
    for name in ("ACTIVE_PROVIDER", "ACTIVE_MODEL", "MAX_TOKENS", "TEMPERATURE"):
        monkeypatch.setattr(config, name, getattr(config, name))
    return config


class TestConstants:
    """Tests for provider tables."""

    def test_every_provider_has_models_and_key(self):
        for provider in LLMProvider:
            assert AVAILABLE_MODELS[provider]
            assert API_KEY_ENV_VARS[provider].endswith("_API_KEY")

    def test_default_model_belongs_to_default_provider(self):
        assert DEFAULT_MODEL in AVAILABLE_MODELS[DEFAULT_PROVIDER]


class TestLoadConfig:
    """Tests for load_config function."""

    def test_applies_global_settings(self, active_config, mocker):
        mocker.patch("hunkstack.global_config.get_active_provider", return_value=LLMProvider.COHERE)
        mocker.patch("hunkstack.global_config.get_active_model", return_value="command-r")
        mocker.patch("hunkstack.global_config.get_max_tokens", return_value=1024)
        mocker.patch("hunkstack.global_config.get_temperature", return_value=0.0)

        load_config()

        assert active_config.ACTIVE_PROVIDER == LLMProvider.COHERE
        assert active_config.ACTIVE_MODEL == "command-r"
        assert active_config.MAX_TOKENS == 1024
        assert active_config.TEMPERATURE == 0.0

    def test_unset_settings_keep_defaults(self, active_config, mocker):
        mocker.patch("hunkstack.global_config.get_active_provider", return_value=None)
        mocker.patch("hunkstack.global_config.get_active_model", return_value=None)
        mocker.patch("hunkstack.global_config.get_max_tokens", return_value=None)
        mocker.patch("hunkstack.global_config.get_temperature", return_value=None)
        before = (active_config.ACTIVE_PROVIDER, active_config.ACTIVE_MODEL, active_config.MAX_TOKENS)

        load_config()

        assert (active_config.ACTIVE_PROVIDER, active_config.ACTIVE_MODEL, active_config.MAX_TOKENS) == before

    def test_broken_config_file_logs_warning(self, active_config, mocker, caplog):
        mocker.patch(
            "hunkstack.global_config.get_active_provider",
            side_effect=GlobalConfigError("bad yaml"),
        )
        before = active_config.ACTIVE_PROVIDER

        load_config()

        assert active_config.ACTIVE_PROVIDER == before
        assert "bad yaml" in caplog.text
