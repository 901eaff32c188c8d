"""
Provider registry.

Maps provider ids to connector classes and builds configured connector
instances on demand. Route handlers look connectors up here instead of
branching on the provider name.
"""

from typing import TYPE_CHECKING

from loguru import logger

from linkvault.domain.errors import ConfigurationError, NotFound
from linkvault.domain.services.connector_base import ProviderConnector
from linkvault.infrastructure.providers.facebook import FacebookConnector
from linkvault.infrastructure.providers.google import GoogleConnector
from linkvault.infrastructure.providers.instagram import InstagramConnector
from linkvault.infrastructure.providers.linkedin import LinkedInConnector
from linkvault.infrastructure.providers.tiktok import TikTokConnector

if TYPE_CHECKING:
    from linkvault.config import Settings
    from linkvault.infrastructure.factory import InfrastructureFactory

# provider id -> (connector class, client id setting, client secret setting)
PROVIDERS: dict[str, tuple[type[ProviderConnector], str, str]] = {
    "tiktok": (TikTokConnector, "tiktok_client_key", "tiktok_client_secret"),
    "facebook": (FacebookConnector, "facebook_app_id", "facebook_app_secret"),
    "instagram": (InstagramConnector, "instagram_app_id", "instagram_app_secret"),
    "linkedin": (LinkedInConnector, "linkedin_client_id", "linkedin_client_secret"),
    "google": (GoogleConnector, "google_client_id", "google_client_secret"),
}


class ProviderRegistry:
    """
    Builds and caches one connector per provider.

    Usage:
        registry = ProviderRegistry(settings, factory)
        connector = registry.get("tiktok")
    """

    def __init__(self, settings: "Settings", factory: "InfrastructureFactory"):
        """
        Initialize the registry.

        Args:
            settings: Application settings (client ids, secrets, redirects)
            factory: Source of the nonce store and credential repository
        """
        self.settings = settings
        self.factory = factory
        self._connectors: dict[str, ProviderConnector] = {}

    @staticmethod
    def provider_ids() -> list[str]:
        """Supported provider ids."""
        return list(PROVIDERS)

    def get(self, provider: str) -> ProviderConnector:
        """
        Get the connector for a provider.

        Args:
            provider: Provider id

        Returns:
            Configured connector

        Raises:
            NotFound: If the provider is not supported
            ConfigurationError: If the provider's client credentials are unset
        """
        if provider in self._connectors:
            return self._connectors[provider]

        entry = PROVIDERS.get(provider)
        if entry is None:
            raise NotFound(f"Unsupported provider: {provider}")
        connector_cls, id_setting, secret_setting = entry

        client_id = getattr(self.settings, id_setting)
        client_secret = getattr(self.settings, secret_setting)
        if not client_id or not client_secret:
            logger.error(f"{provider} client credentials are not configured")
            raise ConfigurationError(f"{provider} is not configured")

        connector = connector_cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=self.settings.get_redirect_uri(provider),
            nonce_store=self.factory.get_nonce_store(),
            credentials=self.factory.get_credential_repository(),
            timeout=self.settings.http_timeout_seconds,
            state_secret=self.settings.secret_key,
        )
        self._connectors[provider] = connector
        return connector
