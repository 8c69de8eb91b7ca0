"""
OpenAI provider.

Uses the async OpenAI SDK for chat completions and model listing. Only
chat models (ids containing "gpt") are kept from discovery.
"""

import logging

import openai
from openai import AsyncOpenAI

from aifactory.providers.base import BaseProvider, Completion, build_chat_messages
from aifactory.schemas import GenerationRequest

logger = logging.getLogger(__name__)

OPENAI_DEFAULT_MODELS = ["gpt-4", "gpt-4-turbo", "gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"]


class OpenAIProvider(BaseProvider):
    """
    Provider for the OpenAI chat completions API.

    The SDK client is created on first use so a missing API key never
    raises at construction time.
    """

    provider_id = "openai"
    provider_name = "OpenAI"
    network_errors = (openai.APIConnectionError,)

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
        supported_models: list[str] | None = None,
        default_model: str = "gpt-3.5-turbo",
        **kwargs,
    ):
        super().__init__(
            supported_models=supported_models or OPENAI_DEFAULT_MODELS,
            default_model=default_model,
            **kwargs,
        )
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None

    @property
    def client(self) -> AsyncOpenAI:
        """Get OpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key, base_url=self._base_url, timeout=self.timeout
            )
            logger.debug("Initialized OpenAI client")
        return self._client

    async def _list_models(self) -> list[str]:
        page = await self.client.models.list()
        return [m.id for m in page.data if "gpt" in m.id]

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
