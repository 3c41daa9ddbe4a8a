"""Cohere provider implementation."""

import cohere

import hunkstack.config as _config
from hunkstack.config import API_KEY_ENV_VARS, LLMProvider
from hunkstack.llm.base import BaseLLMProvider, RawLLMResult
from hunkstack.llm.exceptions import LLMError, MissingAPIKeyError


class CohereProvider(BaseLLMProvider):
    """Cohere LLM provider."""

    def __init__(self, model: str | None = None):
        self.model = model or "command-r-plus"
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.COHERE]

    def get_api_key(self) -> str:
        return self._get_api_key_with_fallback(self.api_key_env_var, "Cohere")

    def generate_raw(self, system_prompt: str, user_prompt: str) -> RawLLMResult:
        api_key = self.get_api_key()
        client = cohere.ClientV2(api_key=api_key)

        try:
            response = client.chat(
                model=self.model,
                max_tokens=_config.MAX_TOKENS,
                temperature=_config.TEMPERATURE,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
            raw_response = response.message.content[0].text
            input_tokens = response.usage.tokens.input_tokens
            output_tokens = response.usage.tokens.output_tokens
        except MissingAPIKeyError:
            raise
        except Exception as e:
            raise LLMError(f"Cohere API call failed: {e}")

        return RawLLMResult(
            raw_response=raw_response,
            model=self.model,
            input_tokens=int(input_tokens or 0),
            output_tokens=int(output_tokens or 0),
        )
