"""
Bearer token verification.

Two backends: the hosted identity service's user endpoint (the token is
sent upstream and the service answers with the user), or local HS256
verification with the identity service's JWT secret.
"""

from abc import ABC, abstractmethod

import httpx
import jwt
from loguru import logger

from linkvault.domain.errors import ConfigurationError, Unauthorized
from linkvault.utils.security import is_valid_subject_id


class IdentityVerifier(ABC):
    """Resolves a bearer token to a subject id."""

    @abstractmethod
    async def verify(self, token: str) -> str:
        """
        Verify a bearer token.

        Args:
            token: Raw bearer token

        Returns:
            Subject id

        Raises:
            Unauthorized: If the token is not valid
        """
        pass


class RemoteIdentityVerifier(IdentityVerifier):
    """Asks the identity service who the token belongs to."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0):
        """
        Initialize the verifier.

        Args:
            base_url: Identity service base URL
            api_key: Public API key sent as ``apikey``
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If the URL or key is unset
        """
        if not base_url or not api_key:
            raise ConfigurationError("Identity backend URL and key must be set")
        self.user_url = f"{base_url.rstrip('/')}/auth/v1/user"
        self.api_key = api_key
        self.timeout = timeout

    async def verify(self, token: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.user_url,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "apikey": self.api_key,
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Identity backend unreachable: {type(e).__name__}")
            raise Unauthorized() from e

        if not response.is_success:
            logger.warning(f"Invalid token: identity backend returned {response.status_code}")
            raise Unauthorized()

        try:
            user_id = response.json().get("id")
        except (ValueError, AttributeError) as e:
            raise Unauthorized() from e
        if not is_valid_subject_id(user_id):
            raise Unauthorized()
        return user_id


class JwtIdentityVerifier(IdentityVerifier):
    """Verifies HS256 user tokens locally."""

    def __init__(self, secret: str, audience: str | None = "authenticated"):
        if not secret:
            raise ConfigurationError("IDENTITY_JWT_SECRET is not set")
        self._secret = secret
        self.audience = audience

    async def verify(self, token: str) -> str:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=["HS256"],
                audience=self.audience,
                options={"require": ["sub", "exp"]},
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise Unauthorized() from e

        user_id = claims["sub"]
        if not is_valid_subject_id(user_id):
            raise Unauthorized()
        return user_id
