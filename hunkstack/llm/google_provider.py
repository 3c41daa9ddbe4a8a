"""Google Gemini provider implementation."""

from google import genai
from google.genai import types

import hunkstack.config as _config
from hunkstack.config import API_KEY_ENV_VARS, LLMProvider
from hunkstack.llm.base import BaseLLMProvider, RawLLMResult
from hunkstack.llm.exceptions import LLMError, MissingAPIKeyError

# Models whose internal "thinking" consumes the max_output_tokens budget
THINKING_MODELS = [
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-2.0-flash-thinking",
]

THINKING_TOKEN_MULTIPLIER = 3

# Groupings over many hunks are long; never ask for less than this
MIN_OUTPUT_TOKENS = 8192


class GoogleProvider(BaseLLMProvider):
    """Google Gemini LLM provider."""

    def __init__(self, model: str | None = None):
        """Initialize the Google provider.

        Args:
            model: The model to use. Defaults to gemini-2.0-flash.
        """
        self.model = model or "gemini-2.0-flash"
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.GOOGLE]

    def get_api_key(self) -> str:
        return self._get_api_key_with_fallback(self.api_key_env_var, "Google")

    def _is_thinking_model(self) -> bool:
        return any(thinking_model in self.model.lower() for thinking_model in THINKING_MODELS)

    def generate_raw(self, system_prompt: str, user_prompt: str) -> RawLLMResult:
        """Generate a raw response using Google Gemini.

        Gemini takes a single prompt, so the system prompt is prepended to
        the user prompt.

        Raises:
            MissingAPIKeyError: If the API key is not set.
            LLMError: For blocked, truncated or empty responses and API errors.
        """
        api_key = self.get_api_key()
        client = genai.Client(api_key=api_key)

        full_prompt = f"{system_prompt}\n\n{user_prompt}"

        max_tokens = max(_config.MAX_TOKENS, MIN_OUTPUT_TOKENS)
        if self._is_thinking_model():
            max_tokens *= THINKING_TOKEN_MULTIPLIER

        try:
            response = client.models.generate_content(
                model=self.model,
                contents=full_prompt,
                config=types.GenerateContentConfig(
                    max_output_tokens=max_tokens,
                    temperature=_config.TEMPERATURE,
                ),
            )

            if not response.candidates:
                raise LLMError("Google Gemini returned no candidates in response")

            finish_reason = str(getattr(response.candidates[0], "finish_reason", ""))
            if "SAFETY" in finish_reason:
                raise LLMError(f"Google Gemini blocked response: {finish_reason}")
            if "MAX_TOKENS" in finish_reason:
                raise LLMError("Response truncated due to max tokens limit.")

            raw_response = response.text
            if not raw_response or not raw_response.strip():
                raise LLMError("Google Gemini returned empty response")

            input_tokens = 0
            output_tokens = 0
            usage = getattr(response, "usage_metadata", None)
            if usage:
                input_tokens = usage.prompt_token_count or 0
                output_tokens = (usage.candidates_token_count or 0) + (
                    getattr(usage, "thoughts_token_count", 0) or 0
                )

            # Rough estimate when the API reports no usage
            if input_tokens == 0:
                input_tokens = len(full_prompt) // 4
            if output_tokens == 0:
                output_tokens = len(raw_response) // 4

        except (MissingAPIKeyError, LLMError):
            raise
        except Exception as e:
            raise LLMError(f"Google Gemini API call failed: {e}")

        return RawLLMResult(
            raw_response=raw_response,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
