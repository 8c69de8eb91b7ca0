"""
Selection Policy - picks the provider that serves a request.

Pure decision function over (request, registered providers, config). The
first matching rule wins:

1. PREFERRED: metadata `preferred_provider` names a registered provider that
   supports the requested model (or no model was requested)
2. MODEL: the first provider, in registration order, supporting `model_id`
3. DEFAULT: the configured default provider, if registered
4. ORDER: the first registered entry of the configured provider order
5. FIRST_REGISTERED: the first provider in registration order

An empty registry yields None. Explicit intent outranks configured
defaults, which outrank registration order; for a fixed registry and
config the choice is deterministic.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from aifactory.config import FactoryConfig
from aifactory.providers.base import Provider
from aifactory.schemas import GenerationRequest

logger = logging.getLogger(__name__)


class SelectionRule(str, Enum):
    """Which rule of the policy produced a choice."""

    PREFERRED = "preferred"
    MODEL = "model"
    DEFAULT = "default"
    ORDER = "order"
    FIRST_REGISTERED = "first_registered"


@dataclass(frozen=True)
class ProviderChoice:
    """
    Result of a selection decision.

    Attributes:
        provider: The selected provider
        provider_id: Registry key of the selected provider
        rule: The rule that matched
    """

    provider: Provider
    provider_id: str
    rule: SelectionRule

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {"provider_id": self.provider_id, "rule": self.rule.value}


def select_provider(
    request: GenerationRequest,
    providers: Mapping[str, Provider],
    config: FactoryConfig,
) -> ProviderChoice | None:
    """
    Choose the provider for a request.

    Args:
        request: The generation request
        providers: Registered providers keyed by id, in registration order
        config: Factory configuration (default provider, provider order)

    Returns:
        ProviderChoice, or None when no provider is registered
    """
    if not providers:
        return None

    model_id = request.model_id

    preferred_id = request.preferred_provider
    if preferred_id and preferred_id in providers:
        preferred = providers[preferred_id]
        if not model_id or preferred.is_model_supported(model_id):
            return ProviderChoice(preferred, preferred_id, SelectionRule.PREFERRED)
        logger.debug(
            f"Preferred provider '{preferred_id}' does not support '{model_id}', ignoring"
        )

    if model_id:
        for provider_id, provider in providers.items():
            if provider.is_model_supported(model_id):
                return ProviderChoice(provider, provider_id, SelectionRule.MODEL)

    if config.default_provider and config.default_provider in providers:
        return ProviderChoice(
            providers[config.default_provider], config.default_provider, SelectionRule.DEFAULT
        )

    for provider_id in config.provider_order or ():
        if provider_id in providers:
            return ProviderChoice(providers[provider_id], provider_id, SelectionRule.ORDER)

    provider_id, provider = next(iter(providers.items()))
    return ProviderChoice(provider, provider_id, SelectionRule.FIRST_REGISTERED)
