"""
Provider Registry

Holds the set of active providers, keyed by provider id. The registry is
built once: every candidate provider runs model discovery and a connection
test, and only providers whose connection test passes are admitted.

Probes run concurrently, but admission follows the input order, so lookups
that scan "the first provider that ..." resolve ties by registration order.
After build() the mapping is never written again.
"""

import asyncio
import logging
import time
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from aifactory.diagnostics import SinkLogger
from aifactory.providers.base import Provider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Ordered mapping of provider id to provider.

    Usage:
        registry = ProviderRegistry()
        await registry.build(default_providers())
        provider = registry.provider_for_model("gpt-4o")

    Attributes:
        is_built: Whether build() has completed
    """

    def __init__(self, sink: SinkLogger | None = None) -> None:
        self._providers: dict[str, Provider] = {}
        self._log = sink or SinkLogger(fallback=logger)
        self._built = False
        self._build_latency_ms: float = 0.0

    async def build(self, providers: Iterable[Provider]) -> None:
        """
        Probe and admit providers.

        A provider whose test_connection() returns False or raises is
        skipped; the skip is only reported to the diagnostic sink. A later
        provider with an id already admitted replaces the earlier one.

        Raises:
            RuntimeError: If the registry has already been built
        """
        if self._built:
            raise RuntimeError("ProviderRegistry already built")

        candidates = list(providers)
        start_time = time.perf_counter()
        self._log.debug(f"Probing {len(candidates)} providers")

        results = await asyncio.gather(*(self._probe(p) for p in candidates))

        for provider, admitted in zip(candidates, results):
            if not admitted:
                continue
            if provider.provider_id in self._providers:
                self._log.warning(
                    f"Provider id '{provider.provider_id}' registered twice, "
                    f"keeping the later instance"
                )
            self._providers[provider.provider_id] = provider
            self._log.info(
                f"Registered provider '{provider.provider_id}' "
                f"({len(provider.supported_models)} models)"
            )

        self._build_latency_ms = (time.perf_counter() - start_time) * 1000
        self._built = True
        self._log.info(
            f"Provider registry ready with {len(self._providers)} providers "
            f"in {self._build_latency_ms:.2f}ms"
        )

    async def _probe(self, provider: Provider) -> bool:
        """Discover models, then test the connection; never raises."""
        provider_id = getattr(provider, "provider_id", repr(provider))
        try:
            await provider.discover_models()
        except Exception as e:
            self._log.warning(f"Model discovery failed for '{provider_id}': {e}")

        try:
            connected = await provider.test_connection()
        except Exception as e:
            self._log.warning(f"Skipping provider '{provider_id}': connection test raised {e}")
            return False

        if not connected:
            self._log.debug(f"Skipping provider '{provider_id}': connection test failed")
            return False
        return True

    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def build_latency_ms(self) -> float:
        return self._build_latency_ms

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers.values())

    def as_mapping(self) -> Mapping[str, Provider]:
        """Read-only view of the id -> provider mapping."""
        return MappingProxyType(self._providers)

    def provider_ids(self) -> list[str]:
        """Registered provider ids in registration order."""
        return list(self._providers.keys())

    def get(self, provider_id: str) -> Provider | None:
        """Look up a provider by id."""
        return self._providers.get(provider_id)

    def all_supported_models(self) -> list[str]:
        """Union of supported models across providers, first-seen order."""
        models: dict[str, None] = {}
        for provider in self._providers.values():
            for model in provider.supported_models:
                models.setdefault(model, None)
        return list(models)

    def provider_for_model(self, model_id: str) -> Provider | None:
        """First registered provider supporting the model."""
        for provider in self._providers.values():
            if provider.is_model_supported(model_id):
                return provider
        return None

    async def connection_health(self) -> dict[str, bool]:
        """
        Test every registered provider now.

        Results are not cached; a provider that raises counts as unhealthy.
        """
        ids = self.provider_ids()
        results = await asyncio.gather(
            *(self._providers[pid].test_connection() for pid in ids),
            return_exceptions=True,
        )
        return {pid: result is True for pid, result in zip(ids, results)}
