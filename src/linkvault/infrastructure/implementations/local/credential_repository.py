"""
Local file-based credential repository implementation.

Stores one JSON file per connected account:
    {base_dir}/
        credentials/
            {user_id}/
                {provider}.json

WARNING: Tokens are stored unencrypted. For development only.
"""

import asyncio
from datetime import datetime
from pathlib import Path

from loguru import logger

from linkvault.domain.models import ProviderCredential, utcnow
from linkvault.infrastructure.implementations.local.json_files import (
    read_json,
    write_json_atomic,
)
from linkvault.infrastructure.repositories.credential_repository import (
    CredentialRepository,
)
from linkvault.utils.security import is_valid_subject_id


class LocalCredentialRepository(CredentialRepository):
    """
    File-based credential storage for local development.

    Upserts replace the whole file atomically; token updates hold a
    process-local lock so the read and rewrite of one row do not interleave.
    """

    def __init__(self, base_dir: str = "./.credentials"):
        """
        Initialize local credential repository.

        Args:
            base_dir: Base directory for credential storage
        """
        self.base_dir = Path(base_dir)
        self.credentials_dir = self.base_dir / "credentials"
        self.credentials_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

        logger.info(f"Initialized LocalCredentialRepository at {self.base_dir}")

    def _path(self, user_id: str, provider: str) -> Path:
        """Get path to a credential file."""
        if not is_valid_subject_id(user_id) or not is_valid_subject_id(provider):
            raise ValueError("Invalid credential key")
        return self.credentials_dir / user_id / f"{provider}.json"

    async def get(self, user_id: str, provider: str) -> ProviderCredential | None:
        """Fetch the credential for (user, provider)."""
        data = read_json(self._path(user_id, provider))
        if data is None:
            return None
        return ProviderCredential.from_dict(data)

    async def upsert(self, credential: ProviderCredential) -> None:
        """Replace the row keyed by (user_id, provider)."""
        path = self._path(credential.user_id, credential.provider)
        write_json_atomic(path, credential.to_dict())
        logger.info(
            f"Stored {credential.provider} credential for user {credential.user_id}"
        )

    async def update_tokens(
        self,
        user_id: str,
        provider: str,
        access_token: str,
        expires_at: datetime | None,
        refresh_token: str | None = None,
    ) -> bool:
        """Replace the token columns of an existing row."""
        async with self._lock:
            current = await self.get(user_id, provider)
            if current is None:
                return False

            current.access_token = access_token
            current.expires_at = expires_at
            if refresh_token:
                current.refresh_token = refresh_token
            current.updated_at = utcnow()

            write_json_atomic(self._path(user_id, provider), current.to_dict())
        return True

    async def delete(self, user_id: str, provider: str) -> bool:
        """Remove the credential file."""
        path = self._path(user_id, provider)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted {provider} credential for user {user_id}")
        return True
