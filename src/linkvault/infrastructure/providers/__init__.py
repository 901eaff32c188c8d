"""Provider connectors and the registry that selects them."""

from linkvault.infrastructure.providers.registry import PROVIDERS, ProviderRegistry

__all__ = ["PROVIDERS", "ProviderRegistry"]
