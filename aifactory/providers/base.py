"""
Provider contract and shared provider helper.

Every backend is reached through an object satisfying the `Provider`
protocol. The dispatch engine only relies on the protocol, so custom
providers need not inherit from anything.

`BaseProvider` holds the bookkeeping the built-in providers share:
- supported model storage with no-regression discovery
- request default merging and chat message building
- exception-to-failure conversion with error code classification
- a lazily created, shared `httpx.AsyncClient`
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

from aifactory.errors import AIErrorCode
from aifactory.schemas import GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TIMEOUT = 30.0


@runtime_checkable
class Provider(Protocol):
    """
    Capability contract for one LLM backend.

    `process` must not raise for ordinary failures (auth, network, invalid
    model, rate limit); it returns a response with `success=False` instead.
    `discover_models` must leave `supported_models` unchanged when it fails.
    """

    provider_id: str
    provider_name: str

    @property
    def supported_models(self) -> list[str]: ...

    async def process(self, request: GenerationRequest) -> GenerationResponse: ...

    async def test_connection(self) -> bool: ...

    async def discover_models(self) -> list[str]: ...

    def is_model_supported(self, model_id: str | None) -> bool: ...


@dataclass
class Completion:
    """Raw output of one provider call before normalization."""

    text: str
    model: str
    tokens_used: int | None = None
    cost: float | None = None


def build_chat_messages(request: GenerationRequest) -> list[dict[str, str]]:
    """
    Build an OpenAI-style message list.

    The system prompt comes first, then the history exactly as given,
    then the prompt as the final user message.
    """
    messages: list[dict[str, str]] = []
    if request.system_prompt:
        messages.append({"role": "system", "content": request.system_prompt})
    for turn in request.history:
        messages.append({"role": turn.role, "content": turn.content})
    messages.append({"role": "user", "content": request.prompt})
    return messages


def _unique(models: list[str]) -> list[str]:
    return list(dict.fromkeys(m for m in models if m))


def _http_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except (ValueError, json.JSONDecodeError):
        return response.text or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return response.text or response.reason_phrase


class BaseProvider:
    """
    Shared implementation of the provider contract.

    Subclasses set `provider_id`/`provider_name` and implement
    `_list_models()` (cheap reachability check and discovery source) and
    `_complete()` (one generation call). Cloud providers override
    `is_configured` to report a missing API key.

    Args:
        supported_models: Models known before discovery runs
        default_model: Model used when a request names none
        default_temperature: Temperature used when a request sets none
        default_max_tokens: Output limit used when a request sets none
        timeout: HTTP timeout in seconds
        http_client: Pre-built client (tests, custom transports)
    """

    provider_id: str = "custom"
    provider_name: str = "Custom"

    # SDK exception types that mean "could not reach the backend"
    network_errors: tuple[type[BaseException], ...] = ()

    def __init__(
        self,
        supported_models: list[str] | None = None,
        default_model: str | None = None,
        default_temperature: float = DEFAULT_TEMPERATURE,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._supported_models = _unique(list(supported_models or []))
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.timeout = timeout
        self._http = http_client

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_id={self.provider_id!r})"

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    @property
    def supported_models(self) -> list[str]:
        """Currently known model ids, in discovery order."""
        return list(self._supported_models)

    @property
    def is_configured(self) -> bool:
        """Whether credentials required for calls are present."""
        return True

    def is_model_supported(self, model_id: str | None) -> bool:
        """Membership test against the current model list."""
        return bool(model_id) and model_id in self._supported_models

    async def discover_models(self) -> list[str]:
        """
        Refresh supported models from the backend.

        Returns:
            The model list after discovery. On failure the previously known
            list is kept and returned.
        """
        if not self.is_configured:
            return self.supported_models

        try:
            models = await self._list_models()
        except Exception as e:
            logger.warning(
                f"{self.provider_name} model discovery failed, keeping "
                f"{len(self._supported_models)} known models: {e}"
            )
            return self.supported_models

        self._supported_models = _unique(models)
        logger.debug(f"{self.provider_name} discovered {len(self._supported_models)} models")
        return self.supported_models

    async def test_connection(self) -> bool:
        """Reachability/auth check through the model listing endpoint."""
        if not self.is_configured:
            return False
        try:
            await self._list_models()
            return True
        except Exception as e:
            logger.debug(f"{self.provider_name} connection test failed: {e}")
            return False

    async def process(self, request: GenerationRequest) -> GenerationResponse:
        """
        Run one generation call.

        Ordinary failures are returned as `success=False` responses carrying
        an error code; nothing is raised.
        """
        if not self.is_configured:
            return GenerationResponse.failure(
                f"{self.provider_name} API key required",
                provider_id=self.provider_id,
                model_used=request.model_id,
                error_code=AIErrorCode.NO_API_KEY,
            )

        merged = self.merge_request_options(request)
        model = merged.model_id or await self._fallback_model()
        if not model:
            return GenerationResponse.failure(
                f"No models available in {self.provider_name}",
                provider_id=self.provider_id,
                error_code=AIErrorCode.INVALID_RESPONSE,
            )

        start_time = time.perf_counter()
        try:
            completion = await self._complete(merged, model)
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"{self.provider_name} processing failed after {latency_ms:.0f}ms: {e}")
            return self._failure_from_exception(e, model)

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{self.provider_name} completed: model={completion.model}, "
            f"latency={latency_ms:.0f}ms"
        )
        return GenerationResponse.ok(
            data=completion.text,
            model_used=completion.model,
            provider_id=self.provider_id,
            tokens_used=completion.tokens_used,
            cost=completion.cost,
        )

    # -------------------------------------------------------------------------
    # Helpers for subclasses
    # -------------------------------------------------------------------------

    def merge_request_options(self, request: GenerationRequest) -> GenerationRequest:
        """Return a copy of the request with provider defaults filled in."""
        return request.model_copy(
            update={
                "model_id": request.model_id or self.default_model,
                "max_tokens": request.max_tokens or self.default_max_tokens,
                "temperature": (
                    request.temperature
                    if request.temperature is not None
                    else self.default_temperature
                ),
            }
        )

    async def _fallback_model(self) -> str | None:
        """Model used when neither the request nor the config names one."""
        if not self._supported_models:
            await self.discover_models()
        return self._supported_models[0] if self._supported_models else None

    @property
    def http(self) -> httpx.AsyncClient:
        """Shared HTTP client (lazy initialization)."""
        if self._http is None:
            self._http = self._create_http_client()
            logger.debug(f"Initialized HTTP client for {self.provider_name}")
        return self._http

    def _create_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        """Close the HTTP client, if one was created."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _failure_from_exception(self, exc: Exception, model: str | None) -> GenerationResponse:
        code, status_code, message = self.classify_error(exc)
        return GenerationResponse.failure(
            f"{self.provider_name} processing failed: {message}",
            provider_id=self.provider_id,
            model_used=model,
            error_code=code,
            status_code=status_code,
        )

    def classify_error(self, exc: Exception) -> tuple[AIErrorCode, int | None, str]:
        """
        Map an exception to (error code, HTTP status, message).

        Handles httpx errors directly and SDK errors through their
        `status_code` attribute and `network_errors`.
        """
        if isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code
            message = _http_error_message(exc.response)
        else:
            status_code = getattr(exc, "status_code", None)
            message = str(exc) or type(exc).__name__

        if status_code in (401, 403):
            return AIErrorCode.NO_API_KEY, status_code, message
        if status_code == 429:
            return AIErrorCode.RATE_LIMIT, status_code, message
        if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError) + self.network_errors):
            return AIErrorCode.NETWORK_ERROR, status_code, message
        if isinstance(exc, (KeyError, IndexError, TypeError, ValueError)):
            return AIErrorCode.INVALID_RESPONSE, status_code, message
        return AIErrorCode.UNKNOWN, status_code, message

    async def _list_models(self) -> list[str]:
        raise NotImplementedError

    async def _complete(self, request: GenerationRequest, model: str) -> Completion:
        raise NotImplementedError

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        response.raise_for_status()
        return response.json()
