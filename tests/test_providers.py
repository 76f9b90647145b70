"""
Tests for LLM provider selection.
"""

from unittest.mock import patch

import pytest

from midnight_court import config
from midnight_court.ai.gemini_client import GeminiClient
from midnight_court.ai.openai_client import OpenAIChatClient, OpenAIResponsesClient
from midnight_court.ai.providers import PROVIDERS, create_llm_client
from midnight_court.ai.proxy_client import FunctionProxyClient


class TestCreateLLMClient:
    """Tests for create_llm_client()."""

    @pytest.mark.parametrize("provider,client_class", [
        ("gemini", GeminiClient),
        ("openai", OpenAIResponsesClient),
        ("openai-chat", OpenAIChatClient),
        (" OpenAI-Chat ", OpenAIChatClient),
    ])
    def test_direct_providers(self, provider, client_class):
        assert isinstance(create_llm_client(provider), client_class)

    def test_default_provider_from_config(self):
        with patch.object(config, "DEFAULT_LLM_PROVIDER", "openai"):
            client = create_llm_client()

        assert isinstance(client, OpenAIResponsesClient)
        assert client.model == "gpt-4o-mini"

    def test_model_override(self):
        assert create_llm_client("gemini", model="gemini-2.5-flash-lite").model == "gemini-2.5-flash-lite"

    def test_function_providers_use_configured_urls(self):
        with patch.object(config, "GEMINI_FUNCTION_URL", "https://fn.example/gemini"), \
                patch.object(config, "OPENAI_FUNCTION_URL", "https://fn.example/openai"):
            gemini = create_llm_client("gemini-function")
            openai = create_llm_client("openai-function")

        assert isinstance(gemini, FunctionProxyClient)
        assert gemini.function_url == "https://fn.example/gemini"
        assert gemini.model == config.DEFAULT_MODEL_NAME
        assert openai.function_url == "https://fn.example/openai"
        assert openai.model == "gpt-4o-mini"

    def test_function_provider_without_url(self):
        with patch.object(config, "GEMINI_FUNCTION_URL", ""):
            with pytest.raises(ValueError, match="function_url is required"):
                create_llm_client("gemini-function")

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider 'claude'"):
            create_llm_client("claude")

    def test_every_listed_provider_is_handled(self):
        with patch.object(config, "GEMINI_FUNCTION_URL", "https://fn.example/g"), \
                patch.object(config, "OPENAI_FUNCTION_URL", "https://fn.example/o"):
            for provider in PROVIDERS:
                assert create_llm_client(provider) is not None
