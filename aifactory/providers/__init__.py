"""
Providers module: one adapter per LLM backend.

Key exports:
- Provider: the capability contract the dispatch engine relies on
- BaseProvider: shared helper the built-in providers extend
- OpenAIProvider, AnthropicProvider, GeminiProvider, GroqProvider:
  cloud APIs (need an API key)
- OllamaProvider, LMStudioProvider: local inference servers
- default_providers(): one instance of every built-in kind from Settings
"""

from aifactory.config import Settings, get_settings
from aifactory.providers.anthropic_provider import AnthropicProvider
from aifactory.providers.base import (
    BaseProvider,
    Completion,
    Provider,
    build_chat_messages,
)
from aifactory.providers.gemini_provider import GeminiProvider
from aifactory.providers.groq_provider import GroqProvider
from aifactory.providers.lmstudio_provider import LMStudioProvider
from aifactory.providers.ollama_provider import OllamaProvider
from aifactory.providers.openai_provider import OpenAIProvider


def _secret(value) -> str | None:
    return value.get_secret_value() if value is not None else None


def default_providers(settings: Settings | None = None) -> list[Provider]:
    """
    Build one provider of every built-in kind.

    Cloud providers are created even without an API key; they fail their
    connection test and are left out of the registry.

    Args:
        settings: Settings to read keys and endpoints from

    Returns:
        Providers in registration order: cloud APIs first, then local servers
    """
    settings = settings or get_settings()
    timeout = settings.request_timeout
    return [
        OpenAIProvider(
            api_key=_secret(settings.openai_api_key),
            base_url=settings.openai_base_url,
            timeout=timeout,
        ),
        AnthropicProvider(
            api_key=_secret(settings.anthropic_api_key),
            base_url=settings.anthropic_base_url,
            timeout=timeout,
        ),
        GeminiProvider(
            api_key=_secret(settings.gemini_api_key),
            base_url=settings.gemini_base_url,
            timeout=timeout,
        ),
        GroqProvider(api_key=_secret(settings.groq_api_key), timeout=timeout),
        OllamaProvider(base_url=settings.ollama_base_url, timeout=timeout),
        LMStudioProvider(base_url=settings.lmstudio_base_url, timeout=timeout),
    ]


__all__ = [
    "Provider",
    "BaseProvider",
    "Completion",
    "build_chat_messages",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "GroqProvider",
    "OllamaProvider",
    "LMStudioProvider",
    "default_providers",
]
