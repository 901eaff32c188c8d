"""Abstract repository interfaces for infrastructure operations."""

from linkvault.infrastructure.repositories.api_key_repository import ApiKeyRepository
from linkvault.infrastructure.repositories.audit_sink import AuditSink
from linkvault.infrastructure.repositories.credential_repository import (
    CredentialRepository,
)
from linkvault.infrastructure.repositories.nonce_store import NonceStore
from linkvault.infrastructure.repositories.rate_limit_store import (
    RateLimitStore,
    WindowCount,
)

__all__ = [
    "ApiKeyRepository",
    "AuditSink",
    "CredentialRepository",
    "NonceStore",
    "RateLimitStore",
    "WindowCount",
]
