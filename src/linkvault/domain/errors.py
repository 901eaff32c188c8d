"""
Domain error taxonomy.

Every error raised by the credential lifecycle derives from
``LinkVaultError`` and carries the HTTP status it maps to. The exception
handlers render them as RFC 7807 Problem Details; 5xx errors never leak
their detail to the client.
"""

from typing import Any

from fastapi import status


class LinkVaultError(Exception):
    """Base error with an HTTP status and a client-safe title."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    title: str = "Internal Server Error"
    code: str = "internal_error"

    def __init__(self, message: str | None = None, **extensions: Any):
        super().__init__(message or self.title)
        self.message = message or self.title
        self.extensions = extensions

    @property
    def exposes_detail(self) -> bool:
        """Whether the message may be shown to the caller."""
        return self.status_code < 500


class ConfigurationError(LinkVaultError):
    """A required server secret or provider credential is missing."""

    title = "Service Misconfigured"
    code = "configuration_error"


class InvalidRequest(LinkVaultError):
    """Malformed body or query parameters."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Bad Request"
    code = "invalid_request"


class NotFound(LinkVaultError):
    """Requested resource does not exist for this subject."""

    status_code = status.HTTP_404_NOT_FOUND
    title = "Not Found"
    code = "not_found"


class InvalidState(LinkVaultError):
    """OAuth state is unparseable, forged, expired, replayed or ill-formed."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Invalid OAuth State"
    code = "invalid_state"


class Unauthorized(LinkVaultError):
    """Missing or invalid bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    title = "Unauthorized"
    code = "unauthorized"


class ForbiddenOrigin(LinkVaultError):
    """Request origin is not in the allow-list."""

    status_code = status.HTTP_403_FORBIDDEN
    title = "Invalid Origin"
    code = "forbidden_origin"


class TooManyRequests(LinkVaultError):
    """Fixed-window rate limit exceeded."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    title = "Rate Limit Exceeded"
    code = "rate_limited"

    def __init__(self, reset_in: int, message: str | None = None):
        super().__init__(message, resetIn=reset_in)
        self.reset_in = reset_in


class ProviderError(LinkVaultError):
    """An upstream provider rejected or failed a call."""

    status_code = status.HTTP_502_BAD_GATEWAY
    title = "Provider Error"
    code = "provider_error"

    def __init__(
        self,
        message: str | None = None,
        provider: str | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable


class ExchangeError(ProviderError):
    """Authorization code or token exchange was rejected."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Token Exchange Failed"
    code = "exchange_failed"


class ProfileFetchError(ProviderError):
    """Mandatory account metadata could not be fetched."""

    title = "Profile Fetch Failed"
    code = "profile_fetch_failed"


class IntegrityError(LinkVaultError):
    """Encrypted secret failed authentication; it was tampered or corrupted."""

    title = "Internal Server Error"
    code = "integrity_error"


class InternalError(LinkVaultError):
    """Unexpected failure; detail stays server-side."""
