"""Exceptions raised by hunkstack.llm providers.

Generation gateways turn every LLMError into a Failed outcome, so these never
reach the CLI from a grouping or message request.
"""


class LLMError(Exception):
    """A provider request failed or returned unusable output."""

    pass


class MissingAPIKeyError(LLMError):
    """No API key in the environment, .env, or ~/.hunkstack/credentials."""

    pass


class JSONParseError(LLMError):
    """The response was not a JSON object matching the expected schema."""

    pass
