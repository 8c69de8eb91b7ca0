"""
Groq provider.

Groq serves open-weight models (Llama, Mixtral, Gemma) through an
OpenAI-compatible chat API; this provider talks to it with the async Groq SDK.
"""

import logging

import groq
from groq import AsyncGroq

from aifactory.providers.base import BaseProvider, Completion, build_chat_messages
from aifactory.schemas import GenerationRequest

logger = logging.getLogger(__name__)

GROQ_DEFAULT_MODELS = ["llama-3.1-8b-instant", "llama-3.3-70b-versatile", "gemma2-9b-it"]


class GroqProvider(BaseProvider):
    """Provider for Groq-hosted models."""

    provider_id = "groq"
    provider_name = "Groq"
    network_errors = (groq.APIConnectionError,)

    def __init__(
        self,
        api_key: str | None = None,
        client: AsyncGroq | None = None,
        supported_models: list[str] | None = None,
        default_model: str = "llama-3.1-8b-instant",
        **kwargs,
    ):
        super().__init__(
            supported_models=supported_models or GROQ_DEFAULT_MODELS,
            default_model=default_model,
            **kwargs,
        )
        self._api_key = api_key
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None

    @property
    def client(self) -> AsyncGroq:
        """Get Groq client (lazy initialization)."""
        if self._client is None:
            self._client = AsyncGroq(api_key=self._api_key, timeout=self.timeout)
            logger.debug("Initialized Groq client")
        return self._client

    async def _list_models(self) -> list[str]:
        page = await self.client.models.list()
        return [m.id for m in page.data]

    async def _complete(self, request: GenerationRequest, model: str) -> Completion:
        response = await self.client.chat.completions.create(
            model=model,
            messages=build_chat_messages(request),
            max_tokens=request.max_tokens,
            temperature=request.temperature,
        )
        usage = response.usage
        return Completion(
            text=response.choices[0].message.content or "",
            model=model,
            tokens_used=usage.prompt_tokens + usage.completion_tokens if usage else None,
        )

    async def aclose(self) -> None:
        await super().aclose()
        if self._client is not None:
            await self._client.close()
            self._client = None
