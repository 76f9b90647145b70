"""
Gemini client (generateContent REST API with a JSON response schema).
"""

from midnight_court.ai.llm_client import LLMClient, LLMRequest, LLMResponse, parse_json_response, post_json
from midnight_court.config import (
    DEFAULT_MODEL_NAME,
    GEMINI_API_BASE,
    GEMINI_API_KEY,
    get_model_config,
)
from midnight_court.errors import ProviderError
from midnight_court.logging_config import debug_log


class GeminiClient(LLMClient):
    """
    Calls models/{model}:generateContent with responseMimeType
    application/json and the request schema as responseJsonSchema.

    Example:
        client = GeminiClient(api_key="...")
        response = client.generate(LLMRequest(prompt=prompt, schema=slide_deck_schema))
    """

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_MODEL_NAME, api_base: str = GEMINI_API_BASE):
        self.api_key = api_key if api_key is not None else GEMINI_API_KEY
        self.model = model
        self.api_base = api_base.rstrip("/")

    def build_payload(self, request: LLMRequest) -> dict:
        settings = get_model_config(request.model or self.model)
        generation_config = {
            "temperature": request.temperature if request.temperature is not None else settings.get("temperature"),
            "maxOutputTokens": request.max_tokens or settings.get("max_tokens"),
        }
        if request.schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseJsonSchema"] = request.schema

        payload = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": generation_config,
        }
        if request.system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": request.system_prompt}]}
        return payload

    def generate(self, request: LLMRequest) -> LLMResponse:
        model = request.model or self.model
        url = f"{self.api_base}/models/{model}:generateContent"
        debug_log(f"[Gemini] Model: {model}, prompt length: {len(request.prompt)} chars")

        body = post_json(
            url,
            self.build_payload(request),
            headers={"x-goog-api-key": self.api_key},
            timeout=request.timeout,
            component="Gemini",
        )

        try:
            parts = body["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            reason = (body.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise ProviderError(f"Gemini returned no content ({reason})") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        parsed = parse_json_response(text) if request.schema is not None else None
        return LLMResponse(output_text=text, output_parsed=parsed, model=model, raw=body)
