"""
AI Factory: one client for many LLM backends

Accepts a normalized generation request, picks the provider that should
serve it (cloud APIs or local inference servers), dispatches it in that
provider's wire format and applies retry and fallback when it fails.
"""

import logging

from aifactory.config import FactoryConfig, Settings, configure_logging, get_settings
from aifactory.dispatcher import AIFactory, create_factory
from aifactory.errors import AIError, AIErrorCode
from aifactory.providers import Provider
from aifactory.schemas import (
    ConversationTurn,
    GenerationRequest,
    GenerationResponse,
    UsageContext,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AIFactory",
    "create_factory",
    "FactoryConfig",
    "Settings",
    "get_settings",
    "configure_logging",
    "AIError",
    "AIErrorCode",
    "Provider",
    "GenerationRequest",
    "GenerationResponse",
    "ConversationTurn",
    "UsageContext",
]
