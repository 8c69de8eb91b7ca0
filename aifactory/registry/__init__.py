"""
Registry module: the set of active providers.

Public API:
- ProviderRegistry: ordered, build-once mapping of provider id to provider
"""

from aifactory.registry.providers import ProviderRegistry

__all__ = ["ProviderRegistry"]
