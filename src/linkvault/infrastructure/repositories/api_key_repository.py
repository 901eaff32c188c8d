"""
Abstract interface for encrypted API key storage.
"""

from abc import ABC, abstractmethod

from linkvault.domain.models import StoredApiKey


class ApiKeyRepository(ABC):
    """Persistence contract for ``StoredApiKey`` rows, one per (user, provider)."""

    @abstractmethod
    async def get(self, user_id: str, provider: str) -> StoredApiKey | None:
        """Fetch the key row for (user, provider), or None."""
        pass

    @abstractmethod
    async def upsert(self, key: StoredApiKey) -> StoredApiKey:
        """
        Insert or replace the key row.

        ``created_at`` of an existing row is preserved.

        Returns:
            The row as stored
        """
        pass

    @abstractmethod
    async def set_validity(self, user_id: str, provider: str, is_valid: bool) -> bool:
        """
        Record the outcome of a validation probe.

        Returns:
            True if a row was updated
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, provider: str) -> bool:
        """
        Remove the key row.

        Returns:
            True if a row was removed
        """
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[StoredApiKey]:
        """All key rows of a user, ordered by provider."""
        pass
