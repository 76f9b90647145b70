"""
AI provider clients for Midnight Court.

The pipeline depends only on LLMClient and ImageSearchClient; the
concrete classes here wrap Gemini, OpenAI and the HTTP function shells.
"""

from midnight_court.ai.citation_lookup import CitationLookup
from midnight_court.ai.gemini_client import GeminiClient
from midnight_court.ai.image_search import HttpImageSearchClient, ImageResult, ImageSearchClient
from midnight_court.ai.llm_client import (
    LLMClient,
    LLMRequest,
    LLMResponse,
    parse_json_response,
    post_json,
)
from midnight_court.ai.openai_client import OpenAIChatClient, OpenAIResponsesClient
from midnight_court.ai.providers import PROVIDERS, create_llm_client
from midnight_court.ai.proxy_client import FunctionProxyClient

__all__ = [
    'CitationLookup',
    'FunctionProxyClient',
    'GeminiClient',
    'HttpImageSearchClient',
    'ImageResult',
    'ImageSearchClient',
    'LLMClient',
    'LLMRequest',
    'LLMResponse',
    'OpenAIChatClient',
    'OpenAIResponsesClient',
    'PROVIDERS',
    'create_llm_client',
    'parse_json_response',
    'post_json',
]
