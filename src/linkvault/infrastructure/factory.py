"""
Infrastructure factory for backend selection.

Selects repository and store implementations based on configuration:
- credentials / API keys: file-based storage under ``infrastructure_base_dir``
- rate limit counters and OAuth nonces: in-process (memory) or Redis
- audit events: application log or a JSON Lines file

Usage:
    from linkvault.infrastructure import InfrastructureFactory
    from linkvault.config import get_settings

    factory = InfrastructureFactory.from_settings(get_settings())

    credentials = factory.get_credential_repository()
    limiter_store = factory.get_rate_limit_store()
"""

from typing import TYPE_CHECKING, Literal

from loguru import logger

from linkvault.infrastructure.repositories import (
    ApiKeyRepository,
    AuditSink,
    CredentialRepository,
    NonceStore,
    RateLimitStore,
)

if TYPE_CHECKING:
    from linkvault.config import Settings

CounterBackend = Literal["memory", "redis"]
AuditBackend = Literal["log", "file"]


class InfrastructureFactory:
    """
    Factory for creating infrastructure instances.

    Instances are cached per factory so every caller shares one store;
    in-memory counters would otherwise split across dependencies.
    """

    def __init__(
        self,
        rate_limit_backend: CounterBackend = "memory",
        audit_backend: AuditBackend = "log",
        **config,
    ):
        """
        Initialize infrastructure factory.

        Args:
            rate_limit_backend: Counter and nonce backend ("memory", "redis")
            audit_backend: Audit sink ("log", "file")
            **config: Backend options (base_dir, redis_url, audit_log_path)

        Raises:
            ValueError: If a backend is not supported
        """
        if rate_limit_backend not in ("memory", "redis"):
            raise ValueError(f"Unsupported rate limit backend: {rate_limit_backend}")
        if audit_backend not in ("log", "file"):
            raise ValueError(f"Unsupported audit sink: {audit_backend}")

        self.rate_limit_backend = rate_limit_backend
        self.audit_backend = audit_backend
        self.config = config
        self._instances: dict[str, object] = {}

        logger.info(
            f"Initialized InfrastructureFactory (counters={rate_limit_backend}, "
            f"audit={audit_backend})"
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "InfrastructureFactory":
        """
        Create factory from Settings object.

        Args:
            settings: Application settings from config.py

        Returns:
            InfrastructureFactory configured from settings
        """
        return cls(
            rate_limit_backend=settings.rate_limit_backend,
            audit_backend=settings.audit_sink,
            base_dir=settings.infrastructure_base_dir,
            redis_url=settings.redis_url,
            audit_log_path=settings.audit_log_path,
        )

    def _cached(self, name: str, build):
        if name not in self._instances:
            self._instances[name] = build()
        return self._instances[name]

    def _base_dir(self) -> str:
        return self.config.get("base_dir", "./.credentials")

    def get_credential_repository(self) -> CredentialRepository:
        """Get the provider credential repository."""
        from linkvault.infrastructure.implementations.local import (
            LocalCredentialRepository,
        )

        return self._cached(
            "credentials", lambda: LocalCredentialRepository(base_dir=self._base_dir())
        )

    def get_api_key_repository(self) -> ApiKeyRepository:
        """Get the encrypted API key repository."""
        from linkvault.infrastructure.implementations.local import (
            LocalApiKeyRepository,
        )

        return self._cached(
            "api_keys", lambda: LocalApiKeyRepository(base_dir=self._base_dir())
        )

    def get_rate_limit_store(self) -> RateLimitStore:
        """
        Get the rate limit counter store.

        Returns:
            RateLimitStore implementation for the configured backend
        """
        if self.rate_limit_backend == "redis":
            from linkvault.infrastructure.implementations.redis import (
                RedisRateLimitStore,
            )

            url = self.config.get("redis_url", "redis://localhost:6379/0")
            return self._cached(
                "rate_limit", lambda: RedisRateLimitStore.from_url(url)
            )

        from linkvault.infrastructure.implementations.local import (
            InMemoryRateLimitStore,
        )

        return self._cached("rate_limit", InMemoryRateLimitStore)

    def get_nonce_store(self) -> NonceStore:
        """
        Get the consumed-nonce store.

        Shares the counter backend: both need to be visible to every worker.
        """
        if self.rate_limit_backend == "redis":
            from linkvault.infrastructure.implementations.redis import (
                RedisNonceStore,
            )

            url = self.config.get("redis_url", "redis://localhost:6379/0")
            return self._cached("nonces", lambda: RedisNonceStore.from_url(url))

        from linkvault.infrastructure.implementations.local import InMemoryNonceStore

        return self._cached("nonces", InMemoryNonceStore)

    def get_audit_sink(self) -> AuditSink:
        """Get the audit sink."""
        if self.audit_backend == "file":
            from linkvault.infrastructure.implementations.local import FileAuditSink

            path = self.config.get("audit_log_path", "./.credentials/audit.jsonl")
            return self._cached("audit", lambda: FileAuditSink(path=path))

        from linkvault.infrastructure.implementations.local import LogAuditSink

        return self._cached("audit", LogAuditSink)

    async def aclose(self) -> None:
        """Close connections held by cached instances."""
        for name, instance in list(self._instances.items()):
            close = getattr(instance, "aclose", None)
            if close is not None:
                await close()
                logger.info(f"Closed {name} backend")
        self._instances.clear()
