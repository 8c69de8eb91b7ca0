"""
Google Gemini provider.

Uses the Generative Language REST API over httpx. Gemini has no system or
assistant roles in `contents`: the system prompt is sent as a leading user
turn and assistant history turns are sent with role "model".
"""

import httpx

from aifactory.providers.base import BaseProvider, Completion
from aifactory.schemas import GenerationRequest

GEMINI_DEFAULT_MODELS = ["gemini-1.5-pro", "gemini-1.5-flash", "gemini-pro"]


class GeminiProvider(BaseProvider):
    """Provider for Google Gemini models."""

    provider_id = "gemini"
    provider_name = "Google Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://generativelanguage.googleapis.com",
        supported_models: list[str] | None = None,
        default_model: str = "gemini-1.5-pro",
        **kwargs,
    ):
        super().__init__(
            supported_models=supported_models or GEMINI_DEFAULT_MODELS,
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
            headers={"Content-Type": "application/json"},
        )

    def _build_contents(self, request: GenerationRequest) -> list[dict]:
        contents = []
        if request.system_prompt:
            contents.append({"role": "user", "parts": [{"text": request.system_prompt}]})
        for turn in request.history:
            role = "model" if turn.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": turn.content}]})
        contents.append({"role": "user", "parts": [{"text": request.prompt}]})
        return contents

    async def _list_models(self) -> list[str]:
        response = await self.http.get("/v1beta/models", params={"key": self._api_key})
        data = self._json(response)
        return [
            m["name"].split("/")[-1]
            for m in data.get("models", [])
            if "gemini" in m.get("name", "")
        ]

    async def _complete(self, request: GenerationRequest, model: str) -> Completion:
        payload = {
            "contents": self._build_contents(request),
            "generationConfig": {
                "maxOutputTokens": request.max_tokens,
                "temperature": request.temperature,
                "topP": 0.8,
                "topK": 40,
            },
        }
        response = await self.http.post(
            f"/v1beta/models/{model}:generateContent",
            params={"key": self._api_key},
            json=payload,
        )
        data = self._json(response)
        candidates = data.get("candidates") or []
        parts = candidates[0]["content"].get("parts", []) if candidates else []
        usage = data.get("usageMetadata") or {}
        return Completion(
            text="".join(part.get("text", "") for part in parts),
            model=model,
            tokens_used=usage.get("totalTokenCount"),
        )
