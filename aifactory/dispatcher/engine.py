"""
Dispatch Engine - the single entry point for generation requests.

For each request the engine:
1. Waits for the provider registry to be ready
2. Selects a provider (see aifactory.router.selection)
3. Invokes it, retrying the same provider on failure
4. Falls back once to the configured fallback provider if retries run out
5. Returns a normalized, decorated GenerationResponse

Construction is two-phase: AIFactory() only stores configuration and
open() builds the registry. ready() awaits the same build task and starts
it if nobody has, so every operation that needs the registry blocks until
it exists.

process() never raises. generate() is the convenience wrapper that raises
AIError on failure and returns plain text on success.
"""

import asyncio
import logging
import time
from typing import Any

from aifactory.config import FactoryConfig
from aifactory.diagnostics import SinkLogger
from aifactory.dispatcher.decoration import decorate_response
from aifactory.errors import AIError, AIErrorCode
from aifactory.providers import default_providers
from aifactory.providers.base import Provider
from aifactory.registry import ProviderRegistry
from aifactory.router import ProviderChoice, select_provider
from aifactory.schemas import (
    NO_PROVIDER_ID,
    ConversationTurn,
    GenerationRequest,
    GenerationResponse,
    UsageContext,
)

logger = logging.getLogger(__name__)

NO_PROVIDERS_MESSAGE = "No AI providers available"
DISPATCH_ORIGIN = "AIFactory"


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


class AIFactory:
    """
    Provider-selection and request-dispatch engine.

    Usage:
        async with AIFactory(fallback_provider="ollama", retries=1) as factory:
            text = await factory.generate("Hello", model_id="gpt-4o-mini")

        # or
        factory = await create_factory(providers=[MyProvider()])
        response = await factory.process(GenerationRequest(prompt="Hi"))

    Args:
        config: Complete configuration; mutually exclusive with `options`
        **options: FactoryConfig fields, overlaid on environment settings
    """

    def __init__(self, config: FactoryConfig | None = None, **options: Any):
        if config is not None and options:
            raise ValueError("Pass either a FactoryConfig or keyword options, not both")
        self._config = config if config is not None else FactoryConfig.from_settings(**options)
        self._log = SinkLogger(self._config.logger, fallback=logger)
        self._registry = ProviderRegistry(sink=self._log)
        self._owned_providers: list[Provider] = []
        self._init_task: asyncio.Future | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def _initialize(self) -> None:
        if self._config.providers is not None:
            providers = list(self._config.providers)
        else:
            providers = default_providers(self._config.settings)
            self._owned_providers = providers
        await self._registry.build(providers)

    async def ready(self) -> None:
        """
        Wait until the provider registry is built.

        Starts the build when open() has not been called. Repeated and
        concurrent calls share a single build.
        """
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._init_task)

    async def open(self) -> "AIFactory":
        """Build the provider registry and return the ready factory."""
        await self.ready()
        return self

    async def aclose(self) -> None:
        """Close clients of the providers this factory created itself."""
        for provider in self._owned_providers:
            close = getattr(provider, "aclose", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> "AIFactory":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def config(self) -> FactoryConfig:
        return self._config

    @property
    def registry(self) -> ProviderRegistry:
        """The registry; may still be empty if ready() has not completed."""
        return self._registry

    @property
    def is_ready(self) -> bool:
        return self._registry.is_built

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def process(self, request: GenerationRequest | dict) -> GenerationResponse:
        """
        Dispatch a request with selection, retry and fallback.

        Never raises: escaped exceptions become failure responses.

        Args:
            request: The generation request (not modified); a plain dict is
                     validated into a GenerationRequest first

        Returns:
            Decorated success response, or the final failure response
        """
        start_time = time.perf_counter()
        last_provider_id = NO_PROVIDER_ID

        try:
            # Returns the same object for GenerationRequest instances
            request = GenerationRequest.model_validate(request)
            await self.ready()

            choice = select_provider(request, self._registry.as_mapping(), self._config)
            if choice is None:
                self._log.warning(NO_PROVIDERS_MESSAGE)
                return GenerationResponse.failure(
                    NO_PROVIDERS_MESSAGE,
                    provider_id=NO_PROVIDER_ID,
                    model_used=request.model_id,
                    error_code=AIErrorCode.NO_PROVIDERS,
                    processing_time=_elapsed_ms(start_time),
                )

            self._log.debug(
                f"Selected provider '{choice.provider_id}' by rule '{choice.rule.value}'"
            )
            last_provider_id = choice.provider_id
            response, retry_count = await self._process_with_retry(choice, request)

            if response.success:
                return decorate_response(
                    request, response, _elapsed_ms(start_time), retry_count=retry_count
                )

            fallback_id = self._config.fallback_provider
            fallback = self._fallback_for(choice.provider_id)
            if fallback is None:
                return response.model_copy(
                    update={"processing_time": _elapsed_ms(start_time), "retry_count": retry_count}
                )

            self._log.warning(
                f"Provider '{choice.provider_id}' failed, falling back to '{fallback_id}'"
            )
            last_provider_id = fallback_id
            fallback_response = await self._invoke(fallback_id, fallback, request)

            if fallback_response.success:
                return decorate_response(
                    request,
                    fallback_response,
                    _elapsed_ms(start_time),
                    retry_count=retry_count,
                    fallback_used=True,
                )
            self._log.error(f"Fallback provider '{fallback_id}' failed: {fallback_response.error}")
            return fallback_response.model_copy(
                update={
                    "processing_time": _elapsed_ms(start_time),
                    "retry_count": retry_count,
                    "fallback_used": True,
                }
            )

        except Exception as e:
            self._log.error(f"AI processing failed: {e}")
            return GenerationResponse.failure(
                f"AI processing failed: {e}",
                provider_id=last_provider_id,
                model_used=getattr(request, "model_id", None),
                error_code=AIErrorCode.UNKNOWN,
                processing_time=_elapsed_ms(start_time),
            )

    async def _invoke(
        self, provider_id: str, provider: Provider, request: GenerationRequest
    ) -> GenerationResponse:
        response = await provider.process(request)
        if response.provider_id is None:
            response = response.model_copy(update={"provider_id": provider_id})
        return response

    async def _process_with_retry(
        self, choice: ProviderChoice, request: GenerationRequest
    ) -> tuple[GenerationResponse, int]:
        """
        Invoke the selected provider, retrying it on failure.

        Uses exponential backoff (retry_delay, 2x, 4x ...) between attempts
        when retry_delay is set.

        Returns:
            The first successful response or the last failure, and the
            number of retries performed.
        """
        max_attempts = self._config.retries + 1

        for attempt in range(max_attempts):
            response = await self._invoke(choice.provider_id, choice.provider, request)

            if response.success:
                return response, attempt

            if attempt < max_attempts - 1:
                wait_time = self._config.retry_delay * (2**attempt)
                self._log.warning(
                    f"Provider '{choice.provider_id}' failed "
                    f"(attempt {attempt + 1}/{max_attempts}), "
                    f"retrying in {wait_time:.2f}s: {response.error}"
                )
                if wait_time > 0:
                    await asyncio.sleep(wait_time)

        self._log.error(
            f"Provider '{choice.provider_id}' failed after {max_attempts} attempts: "
            f"{response.error}"
        )
        return response, max_attempts - 1

    def _fallback_for(self, selected_id: str) -> Provider | None:
        fallback_id = self._config.fallback_provider
        if not fallback_id or fallback_id == selected_id:
            return None
        fallback = self._registry.get(fallback_id)
        if fallback is None:
            self._log.debug(f"Fallback provider '{fallback_id}' is not registered")
        return fallback

    async def generate(
        self,
        prompt: str,
        *,
        model_id: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
        history: list[ConversationTurn] | list[dict] | None = None,
        metadata: dict[str, Any] | None = None,
        usage_context: UsageContext | dict | None = None,
    ) -> str:
        """
        Generate text for a prompt.

        The prompt is forwarded as-is, even when empty.

        Returns:
            The generated text ("" when the provider returned none)

        Raises:
            AIError: If the request failed. `provider` is "AIFactory" when
                     the dispatch layer itself failed (e.g. no providers).
            pydantic.ValidationError: If `history` or `usage_context` is
                     malformed (unknown role, wrong types).
        """
        options: dict[str, Any] = {
            "model_id": model_id,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "system_prompt": system_prompt,
            "history": history,
            "metadata": metadata,
            "usage_context": usage_context,
        }
        request = GenerationRequest(
            prompt=prompt, **{k: v for k, v in options.items() if v is not None}
        )

        response = await self.process(request)

        if not response.success:
            origin = response.provider_id
            if not origin or origin == NO_PROVIDER_ID:
                origin = DISPATCH_ORIGIN
            raise AIError(
                response.error or "Generation failed",
                origin,
                status_code=response.status_code,
                code=response.error_code,
            )

        return response.data or ""

    # -------------------------------------------------------------------------
    # Introspection (each waits for readiness)
    # -------------------------------------------------------------------------

    async def get_available_providers(self) -> list[str]:
        """Registered provider ids in registration order."""
        await self.ready()
        return self._registry.provider_ids()

    async def get_provider(self, provider_id: str) -> Provider | None:
        await self.ready()
        return self._registry.get(provider_id)

    async def get_all_supported_models(self) -> list[str]:
        """Union of models across providers, duplicates collapsed."""
        await self.ready()
        return self._registry.all_supported_models()

    async def is_model_supported(self, model_id: str) -> bool:
        await self.ready()
        return self._registry.provider_for_model(model_id) is not None

    async def get_provider_for_model(self, model_id: str) -> Provider | None:
        """First registered provider supporting the model."""
        await self.ready()
        return self._registry.provider_for_model(model_id)

    async def test_providers(self) -> dict[str, bool]:
        """Run test_connection() on every registered provider now."""
        await self.ready()
        return await self._registry.connection_health()


async def create_factory(config: FactoryConfig | None = None, **options: Any) -> AIFactory:
    """
    Build an AIFactory and wait for its registry.

    Args:
        config: Complete configuration
        **options: FactoryConfig fields, overlaid on environment settings

    Returns:
        A ready AIFactory
    """
    return await AIFactory(config, **options).open()
