"""
API key vault.

Stores third-party API keys encrypted at rest and checks them against the
issuing provider on demand. Plaintext keys exist only in memory during a
save or a validation probe.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
from loguru import logger

from linkvault.domain.errors import InvalidRequest, NotFound
from linkvault.domain.models import StoredApiKey
from linkvault.infrastructure.repositories import ApiKeyRepository
from linkvault.services.cipher import SecretCipher, last_four, mask, validate_format

KEY_PROVIDERS = ("openai", "gemini", "perplexity", "anthropic")

Probe = Callable[[httpx.AsyncClient, str], Awaitable[bool]]


@dataclass
class ValidationResult:
    """Outcome of a validation probe."""

    provider: str
    is_valid: bool
    message: str


async def probe_openai(client: httpx.AsyncClient, api_key: str) -> bool:
    response = await client.get(
        "https://api.openai.com/v1/models",
        headers={"Authorization": f"Bearer {api_key}"},
    )
    return response.is_success


async def probe_gemini(client: httpx.AsyncClient, api_key: str) -> bool:
    response = await client.get(
        "https://generativelanguage.googleapis.com/v1beta/models",
        params={"key": api_key},
    )
    return response.is_success


async def probe_perplexity(client: httpx.AsyncClient, api_key: str) -> bool:
    """Perplexity can answer 200 with an authentication error in the body."""
    response = await client.post(
        "https://api.perplexity.ai/chat/completions",
        headers={"Authorization": f"Bearer {api_key}"},
        json={
            "model": "llama-3.1-sonar-small-128k-online",
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 1,
        },
    )
    try:
        body = response.json()
    except ValueError:
        body = {}
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and "authentication" in str(error.get("message", "")):
        return False
    return response.is_success


async def probe_anthropic(client: httpx.AsyncClient, api_key: str) -> bool:
    response = await client.post(
        "https://api.anthropic.com/v1/messages",
        headers={"x-api-key": api_key, "anthropic-version": "2023-06-01"},
        json={
            "model": "claude-3-haiku-20240307",
            "max_tokens": 1,
            "messages": [{"role": "user", "content": "test"}],
        },
    )
    return response.is_success


KEY_PROBES: dict[str, Probe] = {
    "openai": probe_openai,
    "gemini": probe_gemini,
    "perplexity": probe_perplexity,
    "anthropic": probe_anthropic,
}

PROVIDER_LABELS = {
    "openai": "OpenAI",
    "gemini": "Gemini",
    "perplexity": "Perplexity",
    "anthropic": "Anthropic",
}


class ApiKeyVault:
    """
    Save, validate, delete and list a user's provider API keys.

    Usage:
        vault = ApiKeyVault(repository, SecretCipher(secret))
        stored = await vault.save("user-1", "openai", "sk-...")
    """

    def __init__(
        self,
        repository: ApiKeyRepository,
        cipher: SecretCipher,
        timeout: float = 10.0,
        probes: dict[str, Probe] | None = None,
    ):
        """
        Initialize the vault.

        Args:
            repository: Encrypted key repository
            cipher: Secret cipher
            timeout: Timeout in seconds for validation probes
            probes: Probe per provider (defaults to ``KEY_PROBES``)
        """
        self.repository = repository
        self.cipher = cipher
        self.timeout = timeout
        self.probes = probes if probes is not None else KEY_PROBES

    @staticmethod
    def _check_provider(provider: str | None) -> str:
        if provider not in KEY_PROVIDERS:
            raise InvalidRequest(
                f"Invalid provider. Must be one of: {', '.join(KEY_PROVIDERS)}"
            )
        return provider

    async def save(
        self,
        user_id: str,
        provider: str,
        api_key: str,
        skip_validation: bool = False,
    ) -> StoredApiKey:
        """
        Encrypt and store a key, replacing any previous key for the provider.

        Args:
            user_id: Owning subject id
            provider: Key provider
            api_key: Plaintext key
            skip_validation: Skip the format pre-filter

        Returns:
            The stored row

        Raises:
            InvalidRequest: If the provider is unknown or the key is malformed
        """
        self._check_provider(provider)
        if not api_key:
            raise InvalidRequest("Provider and API key are required")
        if not skip_validation and not validate_format(provider, api_key):
            raise InvalidRequest(f"Invalid API key format for {provider}")

        stored = await self.repository.upsert(
            StoredApiKey(
                user_id=user_id,
                provider=provider,
                ciphertext=self.cipher.encrypt(api_key),
                last_four=last_four(api_key),
                is_valid=True,
            )
        )
        logger.info(f"Saved {provider} key {mask(api_key)} for user {user_id}")
        return stored

    async def validate(self, user_id: str, provider: str) -> ValidationResult:
        """
        Probe the provider with the stored key and record the outcome.

        Probe failures (timeouts, transport errors) count as invalid.

        Raises:
            InvalidRequest: If the provider is unknown
            NotFound: If no key is stored for the provider
            IntegrityError: If the stored ciphertext fails authentication
        """
        self._check_provider(provider)
        stored = await self.repository.get(user_id, provider)
        if stored is None:
            raise NotFound(f"No API key found for {provider}")

        api_key = self.cipher.decrypt(stored.ciphertext)
        label = PROVIDER_LABELS[provider]
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                is_valid = await self.probes[provider](client, api_key)
            message = f"{label} API key is {'valid' if is_valid else 'invalid'}"
        except httpx.HTTPError as e:
            logger.warning(f"{label} key probe failed: {type(e).__name__}")
            is_valid = False
            message = "Validation failed: provider unreachable"

        await self.repository.set_validity(user_id, provider, is_valid)
        logger.info(
            f"{provider} key for user {user_id}: {'VALID' if is_valid else 'INVALID'}"
        )
        return ValidationResult(provider=provider, is_valid=is_valid, message=message)

    async def delete(self, user_id: str, provider: str) -> None:
        """
        Delete a stored key.

        Raises:
            InvalidRequest: If the provider is unknown
            NotFound: If no key is stored for the provider
        """
        self._check_provider(provider)
        if not await self.repository.delete(user_id, provider):
            raise NotFound(f"No API key found for {provider}")
        logger.info(f"Deleted {provider} key for user {user_id}")

    async def list(self, user_id: str) -> list[StoredApiKey]:
        """All stored keys of a user, ordered by provider."""
        return await self.repository.list_for_user(user_id)
