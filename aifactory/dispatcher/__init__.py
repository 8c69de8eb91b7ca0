"""
Dispatcher module: the provider-selection and request-dispatch engine.

Key exports:
- AIFactory: selects a provider per request, retries, falls back
- create_factory(): build an AIFactory and wait for its registry
- decorate_response(): best-effort response annotations
"""

from aifactory.dispatcher.decoration import (
    calculate_confidence,
    decorate_response,
    model_capabilities,
    suggested_improvements,
)
from aifactory.dispatcher.engine import (
    DISPATCH_ORIGIN,
    NO_PROVIDERS_MESSAGE,
    AIFactory,
    create_factory,
)

__all__ = [
    "AIFactory",
    "create_factory",
    "DISPATCH_ORIGIN",
    "NO_PROVIDERS_MESSAGE",
    "decorate_response",
    "calculate_confidence",
    "model_capabilities",
    "suggested_improvements",
]
