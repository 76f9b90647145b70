"""
LLM client interface for Midnight Court.

The pipeline never talks to a provider directly: it builds an LLMRequest
and hands it to whatever LLMClient was injected. Concrete clients live in
gemini_client, openai_client and proxy_client and share the HTTP error
mapping in post_json():

    HTTP 429 / AI_LIMIT_EXCEEDED body  -> LLMLimitExceeded
    any other non-2xx                  -> ProviderError(status)
    requests timeout                   -> OperationTimeout
    connection failure                 -> ProviderError
"""

import json
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import requests

from midnight_court.config import LLM_TIMEOUT_SECONDS
from midnight_court.errors import LLMLimitExceeded, OperationTimeout, ProviderError
from midnight_court.logging_config import debug_log

LIMIT_EXCEEDED_CODE = "AI_LIMIT_EXCEEDED"


@dataclass
class LLMRequest:
    """
    One schema-constrained generation call.

    Attributes:
        prompt: User prompt
        schema: JSON schema the response must follow (None for free text)
        model: Provider model name; clients fall back to their default
        temperature: Sampling temperature
        max_tokens: Output token cap
        timeout: Deadline in seconds for the HTTP call
        system_prompt: Optional system / instructions text
        schema_name: Name reported to providers that require one
    """
    prompt: str
    schema: dict | None = None
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    timeout: float | None = None
    system_prompt: str = ""
    schema_name: str = "response"


@dataclass
class LLMResponse:
    """Raw text plus the parsed object when the provider returned one."""
    output_text: str = ""
    output_parsed: Any = None
    model: str = ""
    raw: dict = field(default_factory=dict, repr=False)


class LLMClient(ABC):
    """Schema-constrained text generation."""

    @abstractmethod
    def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Run one generation.

        Raises:
            LLMLimitExceeded: Usage quota exhausted upstream
            ProviderError: Any other provider failure
            OperationTimeout: request.timeout exceeded
        """


def _error_message(body, fallback: str) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or fallback)
        message = body.get("message") or body.get("details")
        if message:
            return str(message)
        if error:
            return str(error)
    return fallback


def post_json(
    url: str,
    payload: dict,
    headers: dict | None = None,
    timeout: float | None = None,
    component: str = "LLM",
) -> dict:
    """
    POST a JSON payload and return the decoded JSON body.

    Args:
        url: Endpoint
        payload: JSON body
        headers: Extra headers (auth)
        timeout: Seconds before OperationTimeout
        component: Tag used in log lines

    Raises:
        LLMLimitExceeded, ProviderError, OperationTimeout
    """
    timeout = timeout or LLM_TIMEOUT_SECONDS
    start_time = time.time()
    try:
        response = requests.post(url, json=payload, headers=headers or {}, timeout=timeout)
    except requests.exceptions.Timeout as e:
        debug_log(f"[{component}] Timeout after {timeout}s")
        raise OperationTimeout(f"{component} request timed out after {timeout}s") from e
    except requests.exceptions.ConnectionError as e:
        debug_log(f"[{component}] Connection error: {e}")
        raise ProviderError(f"Could not reach {component} provider: {e}") from e
    except requests.exceptions.RequestException as e:
        raise ProviderError(f"{component} request failed: {e}") from e

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.status_code == 429 or (isinstance(body, dict) and body.get("error") == LIMIT_EXCEEDED_CODE):
        message = _error_message(body, "AI usage limit reached")
        debug_log(f"[{component}] Usage limit exceeded: {message}")
        raise LLMLimitExceeded(message)

    if not 200 <= response.status_code < 300:
        message = _error_message(body, response.text[:200] if response.text else "")
        debug_log(f"[{component}] Error: Status {response.status_code}: {message}")
        raise ProviderError(
            f"{component} request failed with status {response.status_code}: {message}",
            status=response.status_code,
        )

    if not isinstance(body, dict):
        raise ProviderError(f"{component} returned a non-JSON body", status=response.status_code)

    debug_log(f"[{component}] Response received in {time.time() - start_time:.2f}s")
    return body


_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def parse_json_response(text: str) -> Any | None:
    """
    Parse JSON from an LLM response with fallback strategies.

    Tries, in order:
    1. Direct JSON parsing
    2. The body of a ```json code fence
    3. The object opened by the first { (chatty prefixes/suffixes)
    4. A [...] array that is not nested inside an object

    Inner fragments of truncated output (one slide, one block's data)
    are never returned.

    Returns:
        Parsed JSON, or None if all strategies fail
    """
    if not text or not isinstance(text, str):
        return None

    # Strategy 1: Direct parse (ideal case)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Strategy 2: Markdown code fence
    fence = _CODE_FENCE.match(text)
    if fence:
        try:
            return json.loads(fence.group(1))
        except json.JSONDecodeError:
            pass

    # Strategy 3: Object opened by the first brace, unless an array opens first
    start, first = text.find("{"), text.find("[")
    if start != -1 and (first == -1 or start < first):
        ends = [m.end() for m in re.finditer(r"\}", text)]
        for end in reversed(ends):
            if end <= start:
                break
            try:
                return json.loads(text[start:end])
            except json.JSONDecodeError:
                continue

    # Strategy 4: JSON array opened before any object
    last = text.rfind("]")
    if first != -1 and last > first and (start == -1 or first < start):
        try:
            return json.loads(text[first:last + 1])
        except json.JSONDecodeError:
            pass

    debug_log(f"[LLM] All JSON parsing strategies failed for: {text[:100]}...")
    return None
