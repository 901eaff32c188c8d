"""
Short-lived service tokens for calls to the workflow engine.

The token is an HS256 JWT ``{sub, userId, iat, exp}`` signed with
``JWT_SECRET``. It is never stored and never verified here; the receiving
service checks it.
"""

from collections.abc import Callable
from datetime import datetime

import jwt

from linkvault.domain.errors import ConfigurationError, InvalidRequest
from linkvault.domain.models import utcnow
from linkvault.utils.security import is_valid_subject_id

ALGORITHM = "HS256"
MAX_TTL_SECONDS = 300


class ServiceTokenMinter:
    """Mints service assertions for one subject at a time."""

    def __init__(
        self,
        secret: str | None,
        ttl_seconds: int = MAX_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the minter.

        Args:
            secret: HMAC signing secret (JWT_SECRET)
            ttl_seconds: Token lifetime, capped at five minutes
            clock: Returns the current aware UTC time

        Raises:
            ConfigurationError: If the secret is unset
        """
        if not secret:
            raise ConfigurationError("JWT_SECRET is not set")
        self._secret = secret
        self.ttl_seconds = max(1, min(int(ttl_seconds), MAX_TTL_SECONDS))
        self.clock = clock

    def mint(self, subject_id: str) -> str:
        """
        Mint a token for ``subject_id``.

        Args:
            subject_id: Subject the downstream call acts for

        Returns:
            Encoded JWT
        """
        if not is_valid_subject_id(subject_id):
            raise InvalidRequest("Invalid subject id")

        issued_at = int(self.clock().timestamp())
        claims = {
            "sub": subject_id,
            "userId": subject_id,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)
