"""
Anthropic provider.

Talks to the Anthropic Messages API over httpx. The system prompt goes in
the dedicated `system` field; history turns with role "system" are sent as
user turns since the Messages API only accepts user/assistant roles.
"""

import httpx

from aifactory.providers.base import BaseProvider, Completion
from aifactory.schemas import GenerationRequest

ANTHROPIC_API_VERSION = "2023-06-01"
ANTHROPIC_DEFAULT_MODELS = [
    "claude-3-opus-20240229",
    "claude-3-sonnet-20240229",
    "claude-3-haiku-20240307",
]


def estimate_cost(input_tokens: int | None, output_tokens: int | None, model: str) -> float | None:
    """Rough USD estimate; decoration only, not billing."""
    if not input_tokens or not output_tokens:
        return None
    expensive = "opus" in model
    input_per_1k = 0.015 if expensive else 0.003
    output_per_1k = 0.075 if expensive else 0.015
    return (input_tokens / 1000) * input_per_1k + (output_tokens / 1000) * output_per_1k


class AnthropicProvider(BaseProvider):
    """Provider for Claude models."""

    provider_id = "anthropic"
    provider_name = "Anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.anthropic.com",
        supported_models: list[str] | None = None,
        default_model: str = "claude-3-sonnet-20240229",
        **kwargs,
    ):
        super().__init__(
            supported_models=supported_models or ANTHROPIC_DEFAULT_MODELS,
            default_model=default_model,
            **kwargs,
        )
        self._api_key = api_key
        self._base_url = base_url

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _create_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={
                "Content-Type": "application/json",
                "x-api-key": self._api_key or "",
                "anthropic-version": ANTHROPIC_API_VERSION,
            },
        )

    def _build_messages(self, request: GenerationRequest) -> list[dict[str, str]]:
        messages = [
            {"role": "assistant" if turn.role == "assistant" else "user", "content": turn.content}
            for turn in request.history
        ]
        messages.append({"role": "user", "content": request.prompt})
        return messages

    async def _list_models(self) -> list[str]:
        data = self._json(await self.http.get("/v1/models"))
        return [m["id"] for m in data.get("data", [])]

    async def _complete(self, request: GenerationRequest, model: str) -> Completion:
        payload = {
            "model": model,
            "messages": self._build_messages(request),
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt

        data = self._json(await self.http.post("/v1/messages", json=payload))
        text = "".join(
            block.get("text", "") for block in data.get("content", []) if block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        input_tokens = usage.get("input_tokens")
        output_tokens = usage.get("output_tokens")
        return Completion(
            text=text,
            model=data.get("model") or model,
            tokens_used=(input_tokens or 0) + (output_tokens or 0) if usage else None,
            cost=estimate_cost(input_tokens, output_tokens, model),
        )
