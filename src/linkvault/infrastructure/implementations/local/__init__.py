"""Local file-based and in-process infrastructure implementations."""

from linkvault.infrastructure.implementations.local.api_key_repository import (
    LocalApiKeyRepository,
)
from linkvault.infrastructure.implementations.local.audit_sink import (
    FileAuditSink,
    LogAuditSink,
)
from linkvault.infrastructure.implementations.local.credential_repository import (
    LocalCredentialRepository,
)
from linkvault.infrastructure.implementations.local.nonce_store import (
    InMemoryNonceStore,
)
from linkvault.infrastructure.implementations.local.rate_limit_store import (
    InMemoryRateLimitStore,
)

__all__ = [
    "FileAuditSink",
    "InMemoryNonceStore",
    "InMemoryRateLimitStore",
    "LocalApiKeyRepository",
    "LocalCredentialRepository",
    "LogAuditSink",
]
