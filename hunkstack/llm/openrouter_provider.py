"""OpenRouter provider implementation.

OpenRouter provides unified access to many models through a single
OpenAI-compatible API.
"""

from openai import OpenAI

import hunkstack.config as _config
from hunkstack.config import API_KEY_ENV_VARS, LLMProvider
from hunkstack.llm.base import BaseLLMProvider, RawLLMResult
from hunkstack.llm.exceptions import LLMError, MissingAPIKeyError

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(BaseLLMProvider):
    """OpenRouter LLM provider."""

    def __init__(self, model: str | None = None):
        """Initialize the OpenRouter provider.

        Args:
            model: The model to use, as provider/model-name (e.g., openai/gpt-4o).
                Defaults to anthropic/claude-sonnet-4.
        """
        self.model = model or "anthropic/claude-sonnet-4"
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.OPENROUTER]

    def get_api_key(self) -> str:
        return self._get_api_key_with_fallback(self.api_key_env_var, "OpenRouter")

    def generate_raw(self, system_prompt: str, user_prompt: str) -> RawLLMResult:
        api_key = self.get_api_key()
        client = OpenAI(api_key=api_key, base_url=OPENROUTER_BASE_URL)

        try:
            response = client.chat.completions.create(
                model=self.model,
                max_tokens=_config.MAX_TOKENS,
                temperature=_config.TEMPERATURE,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                extra_headers={"X-Title": "hunkstack"},
            )
            raw_response = response.choices[0].message.content or ""
            input_tokens = response.usage.prompt_tokens if response.usage else 0
            output_tokens = response.usage.completion_tokens if response.usage else 0
        except MissingAPIKeyError:
            raise
        except Exception as e:
            raise LLMError(f"OpenRouter API call failed: {e}")

        return RawLLMResult(
            raw_response=raw_response,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
