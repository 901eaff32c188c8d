"""
Secret cipher for API keys at rest.

AES-256-GCM authenticated encryption with a key derived from a server-held
secret via PBKDF2-HMAC-SHA256. The stored blob is
``base64(IV || tag || ciphertext)`` with a fresh random IV per call.
"""

import base64
import binascii
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from loguru import logger

from linkvault.domain.errors import ConfigurationError, IntegrityError

IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
MIN_SECRET_LENGTH = 32
KDF_ITERATIONS = 100_000
# Fixed so the same server secret always derives the same key
KDF_SALT = b"supabase-api-keys-encryption-v1"

MASK = "****"

# Shape checks only. A key that matches can still be revoked upstream.
API_KEY_PATTERNS: dict[str, re.Pattern[str]] = {
    "openai": re.compile(r"^sk-[a-zA-Z0-9]{48}$"),
    "gemini": re.compile(r"^AIza[a-zA-Z0-9_-]{35}$"),
    "perplexity": re.compile(r"^pplx-[a-zA-Z0-9]{32,}$"),
    "anthropic": re.compile(r"^sk-ant-[a-zA-Z0-9_-]{95}$"),
}


def derive_key(secret: str | None) -> bytes:
    """
    Derive the 256-bit encryption key from the server secret.

    Args:
        secret: Server-held secret (API_KEY_ENCRYPTION_SECRET)

    Returns:
        32-byte AES key

    Raises:
        ConfigurationError: If the secret is absent or shorter than 32 characters
    """
    if not secret:
        raise ConfigurationError("API_KEY_ENCRYPTION_SECRET is not set")
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"API_KEY_ENCRYPTION_SECRET must be at least {MIN_SECRET_LENGTH} characters"
        )

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=KDF_SALT,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(secret.encode("utf-8"))


class SecretCipher:
    """
    Encrypts and decrypts opaque secrets.

    The key is derived once at construction, so a missing secret fails
    at startup rather than on the first save.
    """

    def __init__(self, secret: str | None):
        """
        Initialize the cipher.

        Args:
            secret: Server-held secret used for key derivation

        Raises:
            ConfigurationError: If the secret is absent or too short
        """
        self._aesgcm = AESGCM(derive_key(secret))

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a secret.

        Args:
            plaintext: Secret to protect

        Returns:
            Base64 blob of IV || tag || ciphertext
        """
        iv = os.urandom(IV_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return base64.b64encode(iv + tag + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> str:
        """
        Decrypt a blob produced by ``encrypt``.

        Args:
            blob: Base64 IV || tag || ciphertext

        Returns:
            The original plaintext

        Raises:
            IntegrityError: If the blob is malformed or fails authentication
        """
        try:
            combined = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            logger.error("Decryption failed: blob is not valid base64")
            raise IntegrityError("Failed to decrypt secret") from e

        if len(combined) < IV_LENGTH + TAG_LENGTH:
            logger.error("Decryption failed: blob is truncated")
            raise IntegrityError("Failed to decrypt secret")

        iv = combined[:IV_LENGTH]
        tag = combined[IV_LENGTH : IV_LENGTH + TAG_LENGTH]
        ciphertext = combined[IV_LENGTH + TAG_LENGTH :]

        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            logger.error("Decryption failed: authentication tag mismatch")
            raise IntegrityError("Failed to decrypt secret") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IntegrityError("Failed to decrypt secret") from e


def last_four(secret: str | None) -> str:
    """
    Fixed-width display suffix of a secret.

    Args:
        secret: Plaintext secret

    Returns:
        Final 4 characters, or ``****`` when shorter than 4
    """
    if not secret or len(secret) < 4:
        return MASK
    return secret[-4:]


def mask(secret: str | None) -> str:
    """
    Masked view for log lines: first 4 and last 4 characters.

    Args:
        secret: Plaintext secret

    Returns:
        ``abcd...wxyz``, or ``****-****`` when shorter than 12
    """
    if not secret or len(secret) < 12:
        return "****-****"
    return f"{secret[:4]}...{secret[-4:]}"


def validate_format(provider: str, candidate: str) -> bool:
    """
    Cheap shape pre-filter for provider API keys.

    Not a security boundary. Providers without a known pattern pass.

    Args:
        provider: Key provider identifier
        candidate: Key to check

    Returns:
        True if the key looks like one issued by the provider
    """
    pattern = API_KEY_PATTERNS.get(provider)
    if pattern is None:
        logger.warning(f"No API key format pattern for provider: {provider}")
        return True
    return pattern.fullmatch(candidate) is not None
