"""
Token refresher.

Hands out a usable access token for a connected account, refreshing it
when it is about to expire. Refresh failures are never fatal here: the
caller gets ``None`` and the stored row is left as it was, so a later
attempt (or a reconnect) can still succeed.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from loguru import logger

from linkvault.domain.errors import LinkVaultError
from linkvault.domain.models import ProviderCredential, utcnow
from linkvault.infrastructure.providers.registry import ProviderRegistry
from linkvault.infrastructure.repositories import CredentialRepository

REFRESH_BUFFER = timedelta(minutes=5)


class TokenRefresher:
    """Returns cached tokens while fresh and refreshes them inside the buffer."""

    def __init__(
        self,
        credentials: CredentialRepository,
        registry: ProviderRegistry,
        clock: Callable[[], datetime] = utcnow,
        buffer: timedelta = REFRESH_BUFFER,
    ):
        """
        Initialize the refresher.

        Args:
            credentials: Credential repository
            registry: Provider registry used to find the connector
            clock: Returns the current aware UTC time
            buffer: How long before expiry a token counts as stale
        """
        self.credentials = credentials
        self.registry = registry
        self.clock = clock
        self.buffer = buffer

    def is_fresh(self, credential: ProviderCredential) -> bool:
        """Whether the stored access token outlives the buffer."""
        if not credential.access_token or credential.expires_at is None:
            return False
        return credential.expires_at > self.clock() + self.buffer

    async def get_valid_access_token(self, user_id: str, provider: str) -> str | None:
        """
        Get an access token that is valid for at least the buffer.

        Args:
            user_id: Owning subject id
            provider: Provider id

        Returns:
            Access token, or None if there is no credential, no refresh token,
            or the refresh failed
        """
        credential = await self.credentials.get(user_id, provider)
        if credential is None or not credential.connected:
            logger.debug(f"No {provider} credential for user {user_id}")
            return None

        if not credential.refresh_token:
            logger.info(
                f"{provider} credential for user {user_id} has no refresh token; "
                "reconnect required"
            )
            return None

        if self.is_fresh(credential):
            return credential.access_token

        refreshed = await self._refresh(credential)
        return refreshed.access_token if refreshed else None

    async def force_refresh(
        self, user_id: str, provider: str
    ) -> ProviderCredential | None:
        """
        Refresh regardless of expiry.

        Args:
            user_id: Owning subject id
            provider: Provider id

        Returns:
            Updated credential, or None under the same conditions as
            ``get_valid_access_token``
        """
        credential = await self.credentials.get(user_id, provider)
        if credential is None or not credential.connected:
            return None
        return await self._refresh(credential)

    async def _refresh(
        self, credential: ProviderCredential
    ) -> ProviderCredential | None:
        user_id, provider = credential.user_id, credential.provider
        if not credential.refresh_token:
            logger.info(
                f"{provider} credential for user {user_id} has no refresh token; "
                "reconnect required"
            )
            return None

        try:
            connector = self.registry.get(provider)
            tokens = await connector.refresh(credential.refresh_token)
        except LinkVaultError as e:
            logger.warning(
                f"Failed to refresh {provider} token for user {user_id}: {e.message}"
            )
            return None

        now = self.clock()
        expires_at = tokens.expires_at(now)
        updated = await self.credentials.update_tokens(
            user_id,
            provider,
            access_token=tokens.access_token,
            expires_at=expires_at,
            refresh_token=tokens.refresh_token,
        )
        if not updated:
            logger.warning(f"{provider} credential for user {user_id} disappeared")
            return None

        logger.info(f"Refreshed {provider} token for user {user_id}")
        credential.access_token = tokens.access_token
        credential.expires_at = expires_at
        if tokens.refresh_token:
            credential.refresh_token = tokens.refresh_token
        credential.updated_at = now
        return credential
