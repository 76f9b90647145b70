"""
OpenAI clients.

Two request styles are supported because deployments differ:
- OpenAIChatClient: /chat/completions with response_format json_schema
- OpenAIResponsesClient: /responses with text.format json_schema
"""

from midnight_court.ai.llm_client import LLMClient, LLMRequest, LLMResponse, parse_json_response, post_json
from midnight_court.config import OPENAI_API_BASE, OPENAI_API_KEY, get_model_config
from midnight_court.errors import ProviderError
from midnight_court.logging_config import debug_log

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class _OpenAIBase(LLMClient):
    endpoint = ""
    component = "OpenAI"

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_OPENAI_MODEL, api_base: str = OPENAI_API_BASE):
        self.api_key = api_key if api_key is not None else OPENAI_API_KEY
        self.model = model
        self.api_base = api_base.rstrip("/")

    def _settings(self, request: LLMRequest) -> tuple[str, float, int]:
        model = request.model or self.model
        settings = get_model_config(model)
        temperature = request.temperature if request.temperature is not None else settings.get("temperature")
        return model, temperature, request.max_tokens or settings.get("max_tokens")

    def build_payload(self, request: LLMRequest) -> dict:
        raise NotImplementedError

    def extract_text(self, body: dict) -> str:
        raise NotImplementedError

    def generate(self, request: LLMRequest) -> LLMResponse:
        payload = self.build_payload(request)
        debug_log(f"[{self.component}] Model: {payload['model']}, prompt length: {len(request.prompt)} chars")

        body = post_json(
            f"{self.api_base}/{self.endpoint}",
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=request.timeout,
            component=self.component,
        )
        text = self.extract_text(body)
        parsed = parse_json_response(text) if request.schema is not None else None
        return LLMResponse(output_text=text, output_parsed=parsed, model=payload["model"], raw=body)


class OpenAIChatClient(_OpenAIBase):
    """Chat Completions API with json_schema output (non-strict: block data varies by type)."""

    endpoint = "chat/completions"
    component = "OpenAIChat"

    def build_payload(self, request: LLMRequest) -> dict:
        model, temperature, max_tokens = self._settings(request)
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        }
        if request.schema is not None:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": request.schema_name, "schema": request.schema, "strict": False},
            }
        return payload

    def extract_text(self, body: dict) -> str:
        try:
            message = body["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("OpenAI chat response has no choices") from e
        if message.get("refusal"):
            raise ProviderError(f"Model refused the request: {message['refusal']}")
        return message.get("content") or ""


class OpenAIResponsesClient(_OpenAIBase):
    """Responses API with text.format json_schema output."""

    endpoint = "responses"
    component = "OpenAIResponses"

    def build_payload(self, request: LLMRequest) -> dict:
        model, temperature, max_tokens = self._settings(request)
        payload = {
            "model": model,
            "input": request.prompt,
            "temperature": temperature,
            "max_output_tokens": max_tokens,
        }
        if request.system_prompt:
            payload["instructions"] = request.system_prompt
        if request.schema is not None:
            payload["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": request.schema_name,
                    "schema": request.schema,
                    "strict": False,
                }
            }
        return payload

    def extract_text(self, body: dict) -> str:
        if isinstance(body.get("output_text"), str):
            return body["output_text"]
        chunks = []
        for item in body.get("output") or []:
            if not isinstance(item, dict) or item.get("type") != "message":
                continue
            for content in item.get("content") or []:
                if isinstance(content, dict) and content.get("type") == "output_text":
                    chunks.append(content.get("text", ""))
        if not chunks:
            raise ProviderError("OpenAI responses output contains no text")
        return "".join(chunks)
