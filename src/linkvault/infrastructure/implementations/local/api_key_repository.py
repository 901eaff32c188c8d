"""
Local file-based API key repository implementation.

Stores one JSON file per user holding all of that user's encrypted keys:
    {base_dir}/
        api_keys/
            {user_id}.json

Only ciphertext and the last four characters are ever written.
"""

import asyncio
from pathlib import Path
from typing import Any

from loguru import logger

from linkvault.domain.models import StoredApiKey, utcnow
from linkvault.infrastructure.implementations.local.json_files import (
    read_json,
    write_json_atomic,
)
from linkvault.infrastructure.repositories.api_key_repository import ApiKeyRepository
from linkvault.utils.security import is_valid_subject_id


class LocalApiKeyRepository(ApiKeyRepository):
    """File-based encrypted API key storage."""

    def __init__(self, base_dir: str = "./.credentials"):
        """
        Initialize local API key repository.

        Args:
            base_dir: Base directory for key storage
        """
        self.base_dir = Path(base_dir)
        self.keys_dir = self.base_dir / "api_keys"
        self.keys_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

        logger.info(f"Initialized LocalApiKeyRepository at {self.base_dir}")

    def _path(self, user_id: str) -> Path:
        """Get path to a user's key file."""
        if not is_valid_subject_id(user_id):
            raise ValueError("Invalid user id")
        return self.keys_dir / f"{user_id}.json"

    def _load(self, user_id: str) -> dict[str, Any]:
        return read_json(self._path(user_id)) or {}

    async def get(self, user_id: str, provider: str) -> StoredApiKey | None:
        """Fetch the key row for (user, provider)."""
        row = self._load(user_id).get(provider)
        return StoredApiKey.from_dict(row) if row else None

    async def upsert(self, key: StoredApiKey) -> StoredApiKey:
        """Insert or replace the key row, preserving created_at."""
        async with self._lock:
            rows = self._load(key.user_id)
            existing = rows.get(key.provider)
            if existing:
                key.created_at = StoredApiKey.from_dict(existing).created_at
            key.updated_at = utcnow()
            rows[key.provider] = key.to_dict()
            write_json_atomic(self._path(key.user_id), rows)
        return key

    async def set_validity(self, user_id: str, provider: str, is_valid: bool) -> bool:
        """Record the outcome of a validation probe."""
        async with self._lock:
            rows = self._load(user_id)
            if provider not in rows:
                return False
            rows[provider]["is_valid"] = is_valid
            rows[provider]["updated_at"] = utcnow().isoformat()
            write_json_atomic(self._path(user_id), rows)
        return True

    async def delete(self, user_id: str, provider: str) -> bool:
        """Remove the key row."""
        async with self._lock:
            rows = self._load(user_id)
            if rows.pop(provider, None) is None:
                return False
            write_json_atomic(self._path(user_id), rows)
        return True

    async def list_for_user(self, user_id: str) -> list[StoredApiKey]:
        """All key rows of a user, ordered by provider."""
        rows = self._load(user_id)
        return [StoredApiKey.from_dict(rows[name]) for name in sorted(rows)]
