"""Configuration for hunkstack.

Provider settings are loaded from ~/.hunkstack/config.yaml by load_config().
Use 'hunkstack config' commands to modify them.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class LLMProvider(Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"
    COHERE = "cohere"
    GROQ = "groq"
    OPENROUTER = "openrouter"


# ============================================================
# DEFAULT FALLBACK VALUES
# ============================================================
# These are used only if ~/.hunkstack/config.yaml doesn't set them

DEFAULT_PROVIDER = LLMProvider.GOOGLE
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.3


# ============================================================
# ACTIVE CONFIGURATION (loaded from global config)
# ============================================================

ACTIVE_PROVIDER = DEFAULT_PROVIDER
ACTIVE_MODEL = DEFAULT_MODEL
MAX_TOKENS = DEFAULT_MAX_TOKENS
TEMPERATURE = DEFAULT_TEMPERATURE


# ============================================================
# COMPOSE SETTINGS
# ============================================================

# Bootstrap results are reused for this long after their last access
BOOTSTRAP_CACHE_TTL_SECONDS = 300

# Message prefix of the stash created while finalizing
STASH_MESSAGE_PREFIX = "hunkstack compose"

DRAFT_ID_PREFIX = "draft-commit"
AI_DRAFT_ID_PREFIX = "ai-commit"

# Diff text sent to the LLM for message generation is truncated past this
MAX_PROMPT_DIFF_CHARS = 50000


def load_config() -> None:
    """Load provider settings from the global config file.

    This should be called by the CLI before using the LLM.
    """
    global ACTIVE_PROVIDER, ACTIVE_MODEL, MAX_TOKENS, TEMPERATURE

    # Import here to avoid circular dependency
    from hunkstack import global_config

    try:
        provider = global_config.get_active_provider()
        model = global_config.get_active_model()
        max_tokens = global_config.get_max_tokens()
        temperature = global_config.get_temperature()
    except global_config.GlobalConfigError as e:
        logger.warning("Using default configuration: %s", e)
        return

    if provider:
        ACTIVE_PROVIDER = provider
    if model:
        ACTIVE_MODEL = model
    if max_tokens is not None:
        MAX_TOKENS = max_tokens
    if temperature is not None:
        TEMPERATURE = temperature


# ============================================================
# AVAILABLE MODELS PER PROVIDER
# ============================================================

AVAILABLE_MODELS = {
    LLMProvider.ANTHROPIC: [
        "claude-sonnet-4-20250514",
        "claude-3-5-sonnet-latest",
        "claude-3-5-haiku-latest",
    ],
    LLMProvider.OPENAI: [
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4o",
        "gpt-4o-mini",
    ],
    LLMProvider.GOOGLE: [
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
    ],
    LLMProvider.COHERE: [
        "command-r-plus",
        "command-r",
    ],
    LLMProvider.GROQ: [
        "llama-3.3-70b-versatile",
        "llama-3.1-8b-instant",
    ],
    LLMProvider.OPENROUTER: [
        "anthropic/claude-sonnet-4",
        "openai/gpt-4o",
        "google/gemini-2.0-flash-exp",
        "meta-llama/llama-3.3-70b-instruct",
        "deepseek/deepseek-chat",
        "qwen/qwen-2.5-coder-32b-instruct",
    ],
}

# ============================================================
# API KEY ENVIRONMENT VARIABLES
# ============================================================

API_KEY_ENV_VARS = {
    LLMProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    LLMProvider.OPENAI: "OPENAI_API_KEY",
    LLMProvider.GOOGLE: "GOOGLE_API_KEY",
    LLMProvider.COHERE: "COHERE_API_KEY",
    LLMProvider.GROQ: "GROQ_API_KEY",
    LLMProvider.OPENROUTER: "OPENROUTER_API_KEY",
}
