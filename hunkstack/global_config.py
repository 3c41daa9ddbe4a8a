"""Global configuration management for hunkstack.

Handles user-level configuration stored in ~/.hunkstack/:
- config.yaml: Provider, model and compose settings
- credentials: API keys for LLM providers
"""

import os
import stat
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from hunkstack.config import LLMProvider


class GlobalConfigError(Exception):
    """Raised when there's an error with global configuration."""
    pass


_CONFIG_DIR = Path.home() / ".hunkstack"


def get_global_config_dir() -> Path:
    """Get the global hunkstack configuration directory."""
    return _CONFIG_DIR


def ensure_global_config_dir() -> Path:
    """Ensure the global config directory exists.

    Returns:
        Path to ~/.hunkstack/
    """
    config_dir = get_global_config_dir()
    config_dir.mkdir(exist_ok=True)
    return config_dir


def get_config_file_path() -> Path:
    return get_global_config_dir() / "config.yaml"


def get_credentials_file_path() -> Path:
    return get_global_config_dir() / "credentials"


def load_global_config() -> Dict[str, Any]:
    """Load global configuration from ~/.hunkstack/config.yaml.

    Returns:
        Dictionary with configuration values. Empty dict if file doesn't exist.

    Raises:
        GlobalConfigError: If the file exists but cannot be read or parsed.
    """
    config_file = get_config_file_path()

    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise GlobalConfigError(f"Failed to load config from {config_file}: {e}")

    if not isinstance(config, dict):
        raise GlobalConfigError(f"Config file {config_file} must contain a mapping")
    return config


def save_global_config(config: Dict[str, Any]) -> None:
    """Save global configuration to ~/.hunkstack/config.yaml."""
    ensure_global_config_dir()
    config_file = get_config_file_path()

    try:
        with open(config_file, "w") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)
    except (OSError, yaml.YAMLError) as e:
        raise GlobalConfigError(f"Failed to save config to {config_file}: {e}")


def load_credentials() -> Dict[str, str]:
    """Load API keys from ~/.hunkstack/credentials.

    The file holds one KEY=value pair per line; blank lines and lines
    starting with # are ignored.
    """
    credentials_file = get_credentials_file_path()

    if not credentials_file.exists():
        return {}

    credentials = {}
    try:
        with open(credentials_file, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                credentials[key.strip()] = value.strip()
    except OSError as e:
        raise GlobalConfigError(f"Failed to load credentials from {credentials_file}: {e}")

    return credentials


def save_credential(provider_key: str, api_key: str) -> None:
    """Save or update an API key in the credentials file.

    Args:
        provider_key: Environment variable name (e.g., "ANTHROPIC_API_KEY")
        api_key: The API key value.
    """
    ensure_global_config_dir()
    credentials_file = get_credentials_file_path()

    credentials = load_credentials()
    credentials[provider_key] = api_key

    try:
        with open(credentials_file, "w") as f:
            f.write("# hunkstack API credentials\n")
            f.write("# Format: PROVIDER_API_KEY=your_key_here\n\n")
            for key, value in credentials.items():
                f.write(f"{key}={value}\n")

        # Owner read/write only
        os.chmod(credentials_file, stat.S_IRUSR | stat.S_IWUSR)
    except OSError as e:
        raise GlobalConfigError(f"Failed to save credential: {e}")


def get_credential(provider_key: str) -> Optional[str]:
    """Get an API key from the credentials file, or None."""
    return load_credentials().get(provider_key)


def get_active_provider() -> Optional[LLMProvider]:
    """Get the active LLM provider, or None if unset or unknown."""
    provider_str = load_global_config().get("provider")
    if not provider_str:
        return None

    try:
        return LLMProvider(provider_str)
    except ValueError:
        return None


def get_active_model() -> Optional[str]:
    return load_global_config().get("model")


def set_provider_and_model(provider: LLMProvider, model: str) -> None:
    """Set the active provider and model in global config."""
    config = load_global_config()
    config["provider"] = provider.value
    config["model"] = model
    save_global_config(config)


def get_max_tokens() -> Optional[int]:
    return load_global_config().get("max_tokens")


def get_temperature() -> Optional[float]:
    return load_global_config().get("temperature")


def get_custom_instructions() -> Optional[str]:
    """Get the default instructions passed to AI grouping, or None."""
    compose_section = load_global_config().get("compose") or {}
    return compose_section.get("custom_instructions")


def set_custom_instructions(instructions: Optional[str]) -> None:
    """Set (or clear, with None) the default AI grouping instructions."""
    config = load_global_config()
    compose_section = config.setdefault("compose", {})
    if instructions:
        compose_section["custom_instructions"] = instructions
    else:
        compose_section.pop("custom_instructions", None)
    save_global_config(config)


def is_configured() -> bool:
    """Check if hunkstack has been configured."""
    return get_config_file_path().exists()
