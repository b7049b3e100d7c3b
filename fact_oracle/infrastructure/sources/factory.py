"""Factory for creating and shutting down source providers."""

from typing import Any, Dict, Optional, Type

from ...domain.ports.source_provider import SourceProvider
from .reddit_adapter import RedditAdapter
from .sportsdb_adapter import SportsDBAdapter

DEFAULT_PROVIDERS: Dict[str, Type[SourceProvider]] = {
    "sports": SportsDBAdapter,
    "reddit": RedditAdapter,
}


class SourceProviderFactory:
    """Create source providers by oracle domain and own their lifecycle."""

    def __init__(self, registry: Optional[Dict[str, Type[SourceProvider]]] = None):
        """Initialize the factory.

        Args:
            registry: Provider class per domain, the built-in adapters if omitted
        """
        self._registry = dict(DEFAULT_PROVIDERS if registry is None else registry)
        self._active_providers: Dict[str, SourceProvider] = {}

    async def create_provider(self, domain: str, **config: Any) -> SourceProvider:
        """Create and initialize the provider of a domain.

        Args:
            domain: Oracle domain served by the provider
            **config: Provider-specific configuration

        Returns:
            Initialized provider instance

        Raises:
            ValueError: If no provider is registered for the domain
            RuntimeError: If initialization fails
        """
        if domain not in self._registry:
            raise ValueError(f"Provider {domain} not registered")

        provider = self._registry[domain](**config)
        try:
            await provider.initialize()
        except Exception as e:
            raise RuntimeError(f"Failed to initialize provider {domain}: {e}")

        self._active_providers[domain] = provider
        return provider

    async def shutdown_all(self) -> None:
        """Shutdown all active providers."""
        while self._active_providers:
            _, provider = self._active_providers.popitem()
            await provider.shutdown()
