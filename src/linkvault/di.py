"""
Dependency injection container for linkvault.

This module provides centralized dependency injection using FastAPI's Depends
with typing.Annotated for clean type hints throughout the application.

Stateful collaborators (counter stores, the gate, connectors) are built once
per process; call ``clear_dependency_caches`` after changing settings.
"""

from collections.abc import AsyncIterator, Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from linkvault.config import Settings, get_settings
from linkvault.infrastructure import InfrastructureFactory
from linkvault.infrastructure.providers import ProviderRegistry
from linkvault.security import (
    GateContext,
    GateOptions,
    IdentityVerifier,
    JwtIdentityVerifier,
    RateLimiter,
    RemoteIdentityVerifier,
    SecurityGate,
)
from linkvault.security.gate import RequestInfo
from linkvault.services.api_keys import ApiKeyVault
from linkvault.services.cipher import SecretCipher
from linkvault.services.service_token import ServiceTokenMinter
from linkvault.services.token_refresher import TokenRefresher
from linkvault.services.workflow_client import WorkflowClient

# ============================================================================
# Settings Dependencies
# ============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings)]
"""Injected Settings instance (cached via lru_cache)."""


# ============================================================================
# Infrastructure Dependencies
# ============================================================================


@lru_cache
def get_infrastructure_factory() -> InfrastructureFactory:
    """
    Get infrastructure factory from settings.

    Returns:
        Configured infrastructure factory (one per process)
    """
    return InfrastructureFactory.from_settings(get_settings())


InfrastructureFactoryDep = Annotated[
    InfrastructureFactory, Depends(get_infrastructure_factory)
]
"""Injected InfrastructureFactory instance."""


@lru_cache
def get_provider_registry() -> ProviderRegistry:
    """
    Get the provider registry.

    Returns:
        Registry building one connector per provider
    """
    return ProviderRegistry(get_settings(), get_infrastructure_factory())


ProviderRegistryDep = Annotated[ProviderRegistry, Depends(get_provider_registry)]
"""Injected ProviderRegistry."""


# ============================================================================
# Service Dependencies
# ============================================================================


@lru_cache
def get_secret_cipher() -> SecretCipher:
    """
    Get the secret cipher.

    Raises:
        ConfigurationError: If API_KEY_ENCRYPTION_SECRET is missing or short
    """
    return SecretCipher(get_settings().api_key_encryption_secret)


def get_api_key_vault(
    factory: InfrastructureFactoryDep,
    settings: SettingsDep,
) -> ApiKeyVault:
    """
    Get the API key vault.

    Args:
        factory: Infrastructure factory (injected)
        settings: Application settings (injected)

    Returns:
        ApiKeyVault over the configured repository
    """
    return ApiKeyVault(
        repository=factory.get_api_key_repository(),
        cipher=get_secret_cipher(),
        timeout=settings.http_timeout_seconds,
    )


ApiKeyVaultDep = Annotated[ApiKeyVault, Depends(get_api_key_vault)]
"""Injected ApiKeyVault."""


def get_token_refresher(
    factory: InfrastructureFactoryDep,
    registry: ProviderRegistryDep,
) -> TokenRefresher:
    """Get the token refresher."""
    return TokenRefresher(factory.get_credential_repository(), registry)


TokenRefresherDep = Annotated[TokenRefresher, Depends(get_token_refresher)]
"""Injected TokenRefresher."""


def get_workflow_client(settings: SettingsDep) -> WorkflowClient:
    """
    Get the workflow client.

    Raises:
        ConfigurationError: If JWT_SECRET is unset
    """
    minter = ServiceTokenMinter(
        settings.jwt_secret, ttl_seconds=settings.service_token_ttl_seconds
    )
    return WorkflowClient(
        webhooks=settings.get_workflow_webhooks(),
        minter=minter,
        timeout=settings.http_timeout_seconds,
    )


WorkflowClientDep = Annotated[WorkflowClient, Depends(get_workflow_client)]
"""Injected WorkflowClient."""


# ============================================================================
# Security Gate Dependencies
# ============================================================================


def build_identity_verifier(settings: Settings) -> IdentityVerifier:
    """
    Build the bearer token verifier for the configured identity backend.

    Args:
        settings: Application settings

    Returns:
        IdentityVerifier implementation

    Raises:
        ValueError: If the backend is not supported
    """
    if settings.identity_backend == "jwt":
        return JwtIdentityVerifier(
            settings.identity_jwt_secret,
            audience=settings.identity_jwt_audience or None,
        )
    if settings.identity_backend == "remote":
        return RemoteIdentityVerifier(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.http_timeout_seconds,
        )
    raise ValueError(f"Unsupported identity backend: {settings.identity_backend}")


@lru_cache
def get_security_gate() -> SecurityGate:
    """
    Get the security gate.

    Returns:
        SecurityGate sharing the process-wide rate limit store and audit sink
    """
    settings = get_settings()
    factory = get_infrastructure_factory()
    return SecurityGate(
        allowed_origins=settings.get_allowed_origins(),
        verifier=build_identity_verifier(settings),
        limiter=RateLimiter(factory.get_rate_limit_store()),
        audit_sink=factory.get_audit_sink(),
    )


SecurityGateDep = Annotated[SecurityGate, Depends(get_security_gate)]
"""Injected SecurityGate."""


def require_gate(
    options: GateOptions,
) -> Callable[[Request, SecurityGate], AsyncIterator[GateContext]]:
    """
    Build a route dependency that runs the security gate.

    Steps 1 to 3 run before the handler. The code after ``yield`` only runs
    when the handler returned normally, so failures are never audited as
    successes.

    Args:
        options: Gate options for the route

    Returns:
        Dependency yielding the admitted GateContext

    Example:
        ```python
        SaveGate = Annotated[GateContext, Depends(require_gate(SAVE_OPTIONS))]

        @router.post("/save")
        async def save(gate: SaveGate): ...
        ```
    """

    async def dependency(
        request: Request, gate: SecurityGateDep
    ) -> AsyncIterator[GateContext]:
        context = await gate.admit(RequestInfo.from_request(request), options)
        yield context
        await gate.audit_success(context, options)

    return dependency


def clear_dependency_caches() -> None:
    """Drop every cached collaborator so the next request rebuilds them."""
    get_security_gate.cache_clear()
    get_secret_cipher.cache_clear()
    get_provider_registry.cache_clear()
    get_infrastructure_factory.cache_clear()
