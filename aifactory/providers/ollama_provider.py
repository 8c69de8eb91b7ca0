"""
Ollama provider.

Local inference server; no API key. Models are whatever has been pulled
into the local Ollama instance, so the model list comes entirely from
discovery (`/api/tags`). Requests without a model use the first one found.
"""

import httpx

from aifactory.providers.base import BaseProvider, Completion, build_chat_messages
from aifactory.schemas import GenerationRequest


class OllamaProvider(BaseProvider):
    """Provider for a local Ollama server."""

    provider_id = "ollama"
    provider_name = "Ollama"

    def __init__(self, base_url: str = "http://localhost:11434", **kwargs):
        super().__init__(**kwargs)
        self._base_url = base_url

    def _create_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=False,
        )

    async def _list_models(self) -> list[str]:
        data = self._json(await self.http.get("/api/tags"))
        return [m["name"] for m in data.get("models", [])]

    async def _complete(self, request: GenerationRequest, model: str) -> Completion:
        payload = {
            "model": model,
            "messages": build_chat_messages(request),
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }
        data = self._json(await self.http.post("/api/chat", json=payload))
        return Completion(
            text=data["message"].get("content", ""),
            model=data.get("model") or model,
            tokens_used=data.get("eval_count"),
        )
