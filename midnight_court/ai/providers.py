"""
LLM provider selection.

The app picks its provider from MIDNIGHT_COURT_LLM_PROVIDER:

    gemini           Gemini API, key from GEMINI_API_KEY
    openai           OpenAI /responses, key from OPENAI_API_KEY
    openai-chat      OpenAI /chat/completions
    gemini-function  HTTP function shell in front of Gemini
    openai-function  HTTP function shell in front of OpenAI
"""

from midnight_court import config
from midnight_court.ai.gemini_client import GeminiClient
from midnight_court.ai.llm_client import LLMClient
from midnight_court.ai.openai_client import DEFAULT_OPENAI_MODEL, OpenAIChatClient, OpenAIResponsesClient
from midnight_court.ai.proxy_client import FunctionProxyClient
from midnight_court.logging_config import debug_log

PROVIDERS = ("gemini", "openai", "openai-chat", "gemini-function", "openai-function")


def create_llm_client(provider: str | None = None, model: str | None = None) -> LLMClient:
    """
    Build the LLMClient for a provider name.

    Args:
        provider: One of PROVIDERS (defaults to config.DEFAULT_LLM_PROVIDER)
        model: Model override; each provider has its own default

    Raises:
        ValueError: Unknown provider, or a function provider whose URL is
            not configured
    """
    name = (provider or config.DEFAULT_LLM_PROVIDER).strip().lower()
    debug_log(f"[Providers] Creating LLM client for '{name}'")

    if name == "gemini":
        return GeminiClient(model=model or config.DEFAULT_MODEL_NAME)
    if name == "openai":
        return OpenAIResponsesClient(model=model or DEFAULT_OPENAI_MODEL)
    if name == "openai-chat":
        return OpenAIChatClient(model=model or DEFAULT_OPENAI_MODEL)
    if name == "gemini-function":
        return FunctionProxyClient(config.GEMINI_FUNCTION_URL, model=model or config.DEFAULT_MODEL_NAME)
    if name == "openai-function":
        return FunctionProxyClient(config.OPENAI_FUNCTION_URL, model=model or DEFAULT_OPENAI_MODEL)

    raise ValueError(f"Unknown LLM provider '{name}'. Expected one of: {', '.join(PROVIDERS)}")
