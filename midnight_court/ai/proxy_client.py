"""
Client for the HTTP function shells that front the LLM providers.

The mobile app never holds provider keys; it POSTs to a small function
that forwards to Gemini or OpenAI and enforces the usage quota. This
client speaks that function's payload and accepts either provider's
response shape.
"""

from midnight_court.ai.llm_client import LLMClient, LLMRequest, LLMResponse, parse_json_response, post_json
from midnight_court.config import DEFAULT_MODEL_NAME, get_model_config
from midnight_court.errors import ProviderError
from midnight_court.logging_config import debug_log


class FunctionProxyClient(LLMClient):
    """
    POSTs {prompt, systemPrompt, model, schema, schemaName, temperature,
    maxTokens, useStructuredOutput} to a function URL.

    A quota rejection from the function ({"error": "AI_LIMIT_EXCEEDED"},
    HTTP 429) surfaces as LLMLimitExceeded.
    """

    def __init__(self, function_url: str, model: str = DEFAULT_MODEL_NAME, headers: dict | None = None):
        if not function_url:
            raise ValueError("function_url is required")
        self.function_url = function_url
        self.model = model
        self.headers = dict(headers or {})

    def build_payload(self, request: LLMRequest) -> dict:
        model = request.model or self.model
        settings = get_model_config(model)
        return {
            "prompt": request.prompt,
            "systemPrompt": request.system_prompt,
            "model": model,
            "schema": request.schema,
            "schemaName": request.schema_name,
            "temperature": request.temperature if request.temperature is not None else settings.get("temperature"),
            "maxTokens": request.max_tokens or settings.get("max_tokens"),
            "useStructuredOutput": request.schema is not None,
        }

    def generate(self, request: LLMRequest) -> LLMResponse:
        payload = self.build_payload(request)
        debug_log(f"[FunctionProxy] POST {self.function_url} (model {payload['model']})")
        body = post_json(
            self.function_url,
            payload,
            headers=self.headers,
            timeout=request.timeout,
            component="FunctionProxy",
        )

        parsed = body.get("output_parsed")
        text = self._extract_text(body)
        if parsed is None and request.schema is not None:
            parsed = parse_json_response(text)
        return LLMResponse(output_text=text, output_parsed=parsed, model=payload["model"], raw=body)

    @staticmethod
    def _extract_text(body: dict) -> str:
        if isinstance(body.get("output_text"), str):
            return body["output_text"]
        choices = body.get("choices")
        if isinstance(choices, list) and choices:
            content = (choices[0].get("message") or {}).get("content")
            if isinstance(content, str):
                return content
        candidates = body.get("candidates")
        if isinstance(candidates, list) and candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if isinstance(body.get("text"), str):
            return body["text"]
        raise ProviderError("Function response contains no generated text")
