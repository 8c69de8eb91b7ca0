"""
Pytest configuration and shared fixtures.

Provides scripted fake providers, mock SDK clients and environment setup
for the AI Factory test suite.

IMPORTANT: Environment variables must be cleared BEFORE importing aifactory
modules, so a developer's real API keys never reach the tests.
"""

import os

for _var in (
    "OPENAI_API_KEY",
    "BOT_CLIENT_OPENAI_KEY",
    "ANTHROPIC_API_KEY",
    "BOT_CLIENT_ANTHROPIC_KEY",
    "GEMINI_API_KEY",
    "BOT_CLIENT_GEMINI_KEY",
    "GROQ_API_KEY",
    "BOT_CLIENT_GROQ_KEY",
    "DEFAULT_PROVIDER",
    "BOT_CLIENT_PROVIDER",
    "FALLBACK_PROVIDER",
    "PROVIDER_ORDER",
    "RETRIES",
    "RETRY_DELAY",
):
    os.environ.pop(_var, None)
os.environ["LOG_LEVEL"] = "WARNING"

# Now safe to import everything else
import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from aifactory.errors import AIErrorCode
from aifactory.schemas import GenerationRequest, GenerationResponse


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line(
        "markers", "integration: mark test as requiring a real backend"
    )


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """
    Clear cached settings between tests.

    Tests that patch the environment get a freshly loaded Settings.
    """
    from aifactory.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeProvider:
    """
    Scripted provider satisfying the Provider protocol.

    Args:
        provider_id: Registry key
        models: Supported model ids
        fail_times: Number of initial process() calls that fail
        always_fail: Every process() call fails
        connected: Result of test_connection(), or an exception to raise
        discovery_error: Exception raised inside discover_models()
        process_error: Exception raised by process()
    """

    def __init__(
        self,
        provider_id: str,
        models: list[str] | None = None,
        fail_times: int = 0,
        always_fail: bool = False,
        connected: bool | Exception = True,
        discovery_error: Exception | None = None,
        discovered_models: list[str] | None = None,
        process_error: Exception | None = None,
    ):
        self.provider_id = provider_id
        self.provider_name = provider_id.title()
        self._models = list(models or [])
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.connected = connected
        self.discovery_error = discovery_error
        self.discovered_models = discovered_models
        self.process_error = process_error
        self.calls: list[GenerationRequest] = []
        self.connection_tests = 0
        self.discoveries = 0

    @property
    def supported_models(self) -> list[str]:
        return list(self._models)

    def is_model_supported(self, model_id: str | None) -> bool:
        return bool(model_id) and model_id in self._models

    async def discover_models(self) -> list[str]:
        self.discoveries += 1
        if self.discovery_error is not None:
            raise self.discovery_error
        if self.discovered_models is not None:
            self._models = list(self.discovered_models)
        return self.supported_models

    async def test_connection(self) -> bool:
        self.connection_tests += 1
        if isinstance(self.connected, Exception):
            raise self.connected
        return self.connected

    async def process(self, request: GenerationRequest) -> GenerationResponse:
        self.calls.append(request)
        if self.process_error is not None:
            raise self.process_error
        if self.always_fail or len(self.calls) <= self.fail_times:
            return GenerationResponse.failure(
                f"{self.provider_id} unavailable",
                provider_id=self.provider_id,
                model_used=request.model_id,
                error_code=AIErrorCode.NETWORK_ERROR,
            )
        return GenerationResponse.ok(
            data=f"{self.provider_id} says: {request.prompt}",
            model_used=request.model_id or (self._models[0] if self._models else "fake-model"),
            provider_id=self.provider_id,
        )


@pytest.fixture
def make_provider():
    """
    Factory fixture for creating FakeProvider objects.

    Usage:
        provider = make_provider("openai", models=["gpt-4o"], fail_times=1)
    """
    return FakeProvider


class RecordingSink:
    """Diagnostic sink that keeps every message per level."""

    def __init__(self):
        self.messages: dict[str, list[str]] = {
            "debug": [],
            "info": [],
            "warning": [],
            "error": [],
        }

    def debug(self, message):
        self.messages["debug"].append(message)

    def info(self, message):
        self.messages["info"].append(message)

    def warning(self, message):
        self.messages["warning"].append(message)

    def error(self, message):
        self.messages["error"].append(message)


@pytest.fixture
def recording_sink():
    """Sink capturing diagnostic messages."""
    return RecordingSink()


@pytest.fixture
def sample_request():
    """A request with every optional field set."""
    return GenerationRequest(
        prompt="What is the capital of France?",
        model_id="gpt-4o-mini",
        temperature=0.2,
        max_tokens=64,
        system_prompt="Answer briefly.",
        history=[
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello! How can I help?"},
        ],
        metadata={"trace": "abc"},
    )


@pytest.fixture
def mock_chat_response():
    """Create a mock chat completion response (OpenAI/Groq SDK shape)."""
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content="Paris."))]
    response.usage = MagicMock(prompt_tokens=100, completion_tokens=50)
    return response


@pytest.fixture
def mock_sdk_client(mock_chat_response):
    """Create a fully mocked async SDK client (AsyncOpenAI/AsyncGroq shape)."""
    mock = AsyncMock()
    mock.chat = MagicMock()
    mock.chat.completions = MagicMock()
    mock.chat.completions.create = AsyncMock(return_value=mock_chat_response)
    mock.models = MagicMock()
    mock.models.list = AsyncMock(
        return_value=MagicMock(
            data=[
                MagicMock(id="gpt-4o"),
                MagicMock(id="gpt-4o-mini"),
                MagicMock(id="whisper-1"),
            ]
        )
    )
    return mock


@pytest.fixture
def mock_http():
    """
    Factory fixture building an httpx.AsyncClient backed by MockTransport.

    Usage:
        client, seen = mock_http("http://localhost:11434", handler)
        # seen collects every httpx.Request sent
    """

    def _create(base_url: str, handler):
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(_record))
        return client, seen

    return _create
