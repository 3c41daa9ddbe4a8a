"""Tests for hunkstack.global_config module."""

import stat
from pathlib import Path

import pytest
import yaml

from hunkstack.config import LLMProvider
from hunkstack.global_config import (
    GlobalConfigError,
    ensure_global_config_dir,
    get_active_model,
    get_active_provider,
    get_config_file_path,
    get_credential,
    get_credentials_file_path,
    get_custom_instructions,
    get_global_config_dir,
    get_max_tokens,
    get_temperature,
    is_configured,
    load_credentials,
    load_global_config,
    save_credential,
    save_global_config,
    set_custom_instructions,
    set_provider_and_model,
)


@pytest.fixture
def config_dir(temp_dir, mocker):
    """Point the global config directory at a temporary location."""
    mock_dir = temp_dir / ".hunkstack"
    mocker.patch("hunkstack.global_config._CONFIG_DIR", mock_dir)
    return mock_dir


class TestGlobalConfigDir:
    """Tests for global config directory functions."""

    def test_get_global_config_dir_returns_path(self):
        """Test that get_global_config_dir returns a Path."""
        result = get_global_config_dir()
        assert isinstance(result, Path)
        assert ".hunkstack" in str(result)

    def test_ensure_global_config_dir_creates_directory(self, config_dir):
        """Test that ensure_global_config_dir creates the directory."""
        result = ensure_global_config_dir()

        assert config_dir.exists()
        assert result == config_dir

    def test_file_paths(self, config_dir):
        assert get_config_file_path() == config_dir / "config.yaml"
        assert get_credentials_file_path() == config_dir / "credentials"


class TestLoadSaveGlobalConfig:
    """Tests for loading and saving global config."""

    def test_load_returns_empty_if_missing(self, config_dir):
        """Test that load returns empty dict if file doesn't exist."""
        assert load_global_config() == {}
        assert not is_configured()

    def test_save_and_load(self, config_dir):
        save_global_config({"provider": "anthropic", "max_tokens": 2048})

        assert is_configured()
        assert load_global_config() == {"provider": "anthropic", "max_tokens": 2048}
        assert yaml.safe_load((config_dir / "config.yaml").read_text())["provider"] == "anthropic"

    def test_invalid_yaml_raises_error(self, config_dir):
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("provider: [unclosed\n")

        with pytest.raises(GlobalConfigError, match="Failed to load config"):
            load_global_config()

    def test_non_mapping_raises_error(self, config_dir):
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("- just\n- a list\n")

        with pytest.raises(GlobalConfigError, match="must contain a mapping"):
            load_global_config()

    def test_empty_file_is_empty_config(self, config_dir):
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("")
        assert load_global_config() == {}


class TestCredentials:
    """Tests for the credentials file."""

    def test_save_and_get_credential(self, config_dir):
        """Test that a saved key can be read back."""
        save_credential("OPENAI_API_KEY", "sk-test")

        assert get_credential("OPENAI_API_KEY") == "sk-test"
        assert get_credential("GROQ_API_KEY") is None

    def test_save_updates_existing_key(self, config_dir):
        save_credential("OPENAI_API_KEY", "old")
        save_credential("GROQ_API_KEY", "groq")
        save_credential("OPENAI_API_KEY", "new")

        assert load_credentials() == {"OPENAI_API_KEY": "new", "GROQ_API_KEY": "groq"}

    def test_credentials_file_is_private(self, config_dir):
        save_credential("OPENAI_API_KEY", "sk-test")

        mode = (config_dir / "credentials").stat().st_mode
        assert stat.S_IMODE(mode) == stat.S_IRUSR | stat.S_IWUSR

    def test_comments_and_blank_lines_are_ignored(self, config_dir):
        config_dir.mkdir()
        (config_dir / "credentials").write_text(
            "# comment\n\nANTHROPIC_API_KEY = sk-ant\nnot a pair\n"
        )

        assert load_credentials() == {"ANTHROPIC_API_KEY": "sk-ant"}


class TestProviderSettings:
    """Tests for provider and model settings."""

    def test_set_provider_and_model(self, config_dir):
        set_provider_and_model(LLMProvider.GROQ, "llama-3.3-70b-versatile")

        assert get_active_provider() == LLMProvider.GROQ
        assert get_active_model() == "llama-3.3-70b-versatile"

    def test_unknown_provider_is_ignored(self, config_dir):
        save_global_config({"provider": "mistral"})
        assert get_active_provider() is None

    def test_unset_values(self, config_dir):
        assert get_active_provider() is None
        assert get_active_model() is None
        assert get_max_tokens() is None
        assert get_temperature() is None

    def test_generation_settings(self, config_dir):
        save_global_config({"max_tokens": 8000, "temperature": 0.1})

        assert get_max_tokens() == 8000
        assert get_temperature() == 0.1

    def test_set_provider_keeps_other_settings(self, config_dir):
        save_global_config({"temperature": 0.5})
        set_provider_and_model(LLMProvider.OPENAI, "gpt-4o")
        assert load_global_config()["temperature"] == 0.5


class TestCustomInstructions:
    """Tests for default AI grouping instructions."""

    def test_set_and_get(self, config_dir):
        set_custom_instructions("Keep tests in their own commit")
        assert get_custom_instructions() == "Keep tests in their own commit"

    def test_clear(self, config_dir):
        set_custom_instructions("Something")
        set_custom_instructions(None)
        assert get_custom_instructions() is None

    def test_missing_section(self, config_dir):
        save_global_config({"compose": None})
        assert get_custom_instructions() is None
