"""LLM provider module for hunkstack.

This module provides a unified interface to multiple LLM providers.
The active provider is configured in ~/.hunkstack/config.yaml.
"""

from dotenv import load_dotenv

import hunkstack.config as _config
from hunkstack.config import LLMProvider
from hunkstack.llm.base import BaseLLMProvider, RawLLMResult
from hunkstack.llm.exceptions import JSONParseError, LLMError, MissingAPIKeyError
from hunkstack.llm.parsing import (
    GroupingResponse,
    MessageResponse,
    ProposedCommit,
    parse_json_response,
    validate_response,
)

# Load environment variables from .env file
load_dotenv()


def get_provider(
    provider: LLMProvider | None = None,
    model: str | None = None,
) -> BaseLLMProvider:
    """Get an LLM provider instance.

    Args:
        provider: The provider to use. Defaults to the configured provider.
        model: The model to use. Defaults to the configured model.

    Raises:
        ValueError: If the provider is not supported.
    """
    provider = provider or _config.ACTIVE_PROVIDER
    model = model or _config.ACTIVE_MODEL

    if provider == LLMProvider.ANTHROPIC:
        from hunkstack.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider(model=model)

    elif provider == LLMProvider.OPENAI:
        from hunkstack.llm.openai_provider import OpenAIProvider

        return OpenAIProvider(model=model)

    elif provider == LLMProvider.GOOGLE:
        from hunkstack.llm.google_provider import GoogleProvider

        return GoogleProvider(model=model)

    elif provider == LLMProvider.COHERE:
        from hunkstack.llm.cohere_provider import CohereProvider

        return CohereProvider(model=model)

    elif provider == LLMProvider.GROQ:
        from hunkstack.llm.groq_provider import GroqProvider

        return GroqProvider(model=model)

    elif provider == LLMProvider.OPENROUTER:
        from hunkstack.llm.openrouter_provider import OpenRouterProvider

        return OpenRouterProvider(model=model)

    else:
        raise ValueError(f"Unsupported provider: {provider}")


__all__ = [
    "BaseLLMProvider",
    "GroupingResponse",
    "JSONParseError",
    "LLMError",
    "MessageResponse",
    "MissingAPIKeyError",
    "ProposedCommit",
    "RawLLMResult",
    "get_provider",
    "parse_json_response",
    "validate_response",
]
