"""OpenAI provider implementation."""

from openai import OpenAI

import hunkstack.config as _config
from hunkstack.config import API_KEY_ENV_VARS, LLMProvider
from hunkstack.llm.base import BaseLLMProvider, RawLLMResult
from hunkstack.llm.exceptions import LLMError, MissingAPIKeyError


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT LLM provider."""

    def __init__(self, model: str | None = None):
        """Initialize the OpenAI provider.

        Args:
            model: The model to use. Defaults to gpt-4o-mini.
        """
        self.model = model or "gpt-4o-mini"
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.OPENAI]

    def get_api_key(self) -> str:
        return self._get_api_key_with_fallback(self.api_key_env_var, "OpenAI")

    def generate_raw(self, system_prompt: str, user_prompt: str) -> RawLLMResult:
        api_key = self.get_api_key()
        client = OpenAI(api_key=api_key)

        try:
            response = client.chat.completions.create(
                model=self.model,
                max_tokens=_config.MAX_TOKENS,
                temperature=_config.TEMPERATURE,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
            raw_response = response.choices[0].message.content or ""
            input_tokens = response.usage.prompt_tokens if response.usage else 0
            output_tokens = response.usage.completion_tokens if response.usage else 0
        except MissingAPIKeyError:
            raise
        except Exception as e:
            raise LLMError(f"OpenAI API call failed: {e}")

        return RawLLMResult(
            raw_response=raw_response,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
