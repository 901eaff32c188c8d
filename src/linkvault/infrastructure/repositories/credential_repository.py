"""
Abstract interface for connected-account credential storage.

One row per (user, provider). Writes are single atomic upserts; there is
no read-modify-write on the connect path, so two concurrent callbacks for
the same pair are both safe and the last write wins.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from linkvault.domain.models import ProviderCredential


class CredentialRepository(ABC):
    """Persistence contract for ``ProviderCredential`` rows."""

    @abstractmethod
    async def get(self, user_id: str, provider: str) -> ProviderCredential | None:
        """
        Fetch the credential for (user, provider).

        Args:
            user_id: Subject id
            provider: Provider identifier

        Returns:
            The stored credential, or None
        """
        pass

    @abstractmethod
    async def upsert(self, credential: ProviderCredential) -> None:
        """
        Insert or replace the row keyed by (user_id, provider).

        Args:
            credential: Full credential row
        """
        pass

    @abstractmethod
    async def update_tokens(
        self,
        user_id: str,
        provider: str,
        access_token: str,
        expires_at: datetime | None,
        refresh_token: str | None = None,
    ) -> bool:
        """
        Replace the token columns of an existing row.

        The refresh token is only overwritten when a new one is given.

        Args:
            user_id: Subject id
            provider: Provider identifier
            access_token: New access token
            expires_at: New expiry
            refresh_token: Rotated refresh token, if any

        Returns:
            True if a row was updated
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, provider: str) -> bool:
        """
        Remove the credential for (user, provider).

        Returns:
            True if a row was removed
        """
        pass
