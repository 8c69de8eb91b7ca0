"""
LM Studio provider.

LM Studio exposes an OpenAI-compatible server on localhost. The model list
comes from `/v1/models`; requests without a model use the first one loaded.
"""

import httpx

from aifactory.providers.base import BaseProvider, Completion, build_chat_messages
from aifactory.schemas import GenerationRequest


class LMStudioProvider(BaseProvider):
    """Provider for a local LM Studio server."""

    provider_id = "lmstudio"
    provider_name = "LM Studio"

    def __init__(self, base_url: str = "http://localhost:1234", **kwargs):
        super().__init__(**kwargs)
        self._base_url = base_url

    def _create_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"Content-Type": "application/json"},
        )

    async def _list_models(self) -> list[str]:
        data = self._json(await self.http.get("/v1/models"))
        return [m["id"] for m in data.get("data", [])]

    async def _complete(self, request: GenerationRequest, model: str) -> Completion:
        payload = {
            "model": model,
            "messages": build_chat_messages(request),
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        data = self._json(await self.http.post("/v1/chat/completions", json=payload))
        usage = data.get("usage") or {}
        return Completion(
            text=data["choices"][0]["message"].get("content") or "",
            model=data.get("model") or model,
            tokens_used=usage.get("total_tokens"),
        )
