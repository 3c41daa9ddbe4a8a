"""Base classes and shared utilities for LLM providers."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

from hunkstack.llm.exceptions import MissingAPIKeyError


@dataclass
class RawLLMResult:
    """Unparsed response text from an LLM call, including token usage."""

    raw_response: str
    model: str
    input_tokens: int
    output_tokens: int


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers.

    Providers are synchronous. Compose runs them in a worker thread so the
    event loop can observe cancellation while a request is in flight.
    """

    model: str

    @abstractmethod
    def generate_raw(self, system_prompt: str, user_prompt: str) -> RawLLMResult:
        """Send a system and user prompt and return the raw response text.

        Raises:
            MissingAPIKeyError: If the API key is not set.
            LLMError: For other LLM-related errors.
        """
        pass

    @abstractmethod
    def get_api_key(self) -> str:
        """Get the API key from environment or credentials file.

        Checks in order:
        1. Environment variable (including a loaded .env file)
        2. ~/.hunkstack/credentials file

        Raises:
            MissingAPIKeyError: If the API key is not found.
        """
        pass

    def _get_api_key_with_fallback(self, env_var_name: str, provider_name: str) -> str:
        """Look up env_var_name in the environment, then the credentials file."""
        api_key = os.getenv(env_var_name)
        if api_key:
            return api_key

        from hunkstack.global_config import GlobalConfigError, get_credential

        try:
            api_key = get_credential(env_var_name)
        except GlobalConfigError:
            api_key = None
        if api_key:
            return api_key

        raise MissingAPIKeyError(
            f"{provider_name} API key not found. Set it using:\n"
            f"  1. Environment variable: export {env_var_name}=your_key_here\n"
            f"  2. Run: hunkstack config set-key {provider_name.lower()}\n"
            f"  3. Manually add to ~/.hunkstack/credentials"
        )
