"""
Unit tests for the token refresher.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import httpx
import pytest
import respx

from linkvault.domain.errors import ConfigurationError
from linkvault.domain.models import ProviderCredential
from linkvault.infrastructure.implementations.local import (
    InMemoryNonceStore,
    LocalCredentialRepository,
)
from linkvault.infrastructure.providers.facebook import FacebookConnector
from linkvault.infrastructure.providers.google import GoogleConnector
from linkvault.services.token_refresher import REFRESH_BUFFER, TokenRefresher

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def repository(tmp_path):
    return LocalCredentialRepository(base_dir=str(tmp_path))


@pytest.fixture
def registry(repository):
    """Registry stub handing out real connectors."""
    connectors = {}
    for cls in (GoogleConnector, FacebookConnector):
        connector = cls(
            client_id="client-id",
            client_secret="client-secret",
            redirect_uri="http://localhost/callback",
            nonce_store=InMemoryNonceStore(),
            credentials=repository,
        )
        connectors[connector.provider_name] = connector
    registry = MagicMock()
    registry.get.side_effect = lambda provider: connectors[provider]
    return registry


@pytest.fixture
def refresher(repository, registry):
    return TokenRefresher(repository, registry, clock=lambda: NOW)


async def store(repository, **overrides) -> ProviderCredential:
    values = {
        "user_id": "user-1",
        "provider": "google",
        "access_token": "old-access",
        "refresh_token": "refresh-1",
        "expires_at": NOW + timedelta(hours=1),
    }
    values.update(overrides)
    credential = ProviderCredential(**values)
    await repository.upsert(credential)
    return credential


@respx.mock
@pytest.mark.asyncio
async def test_fresh_token_is_returned_without_network(refresher, repository):
    """Test a token valid beyond the buffer is returned as-is."""
    await store(repository)

    token = await refresher.get_valid_access_token("user-1", "google")

    assert token == "old-access"
    assert respx.calls.call_count == 0


@respx.mock
@pytest.mark.asyncio
async def test_token_without_expiry_is_refreshed(refresher, repository):
    """Test an unknown expiry counts as stale."""
    await store(repository, expires_at=None)
    route = respx.post(GoogleConnector.TOKEN_URL).mock(
        return_value=httpx.Response(
            200, json={"access_token": "new-access", "expires_in": 3600}
        )
    )

    token = await refresher.get_valid_access_token("user-1", "google")

    assert token == "new-access"
    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_token_inside_buffer_is_refreshed_once(refresher, repository):
    """Test exactly one refresh call and the row is updated."""
    await store(repository, expires_at=NOW + REFRESH_BUFFER - timedelta(seconds=1))
    route = respx.post(GoogleConnector.TOKEN_URL).mock(
        return_value=httpx.Response(
            200, json={"access_token": "new-access", "expires_in": 3600}
        )
    )

    token = await refresher.get_valid_access_token("user-1", "google")

    stored = await repository.get("user-1", "google")
    assert token == "new-access"
    assert route.call_count == 1
    assert stored.access_token == "new-access"
    assert stored.expires_at == NOW + timedelta(seconds=3600)
    assert stored.refresh_token == "refresh-1"


@respx.mock
@pytest.mark.asyncio
async def test_rotated_refresh_token_is_stored(refresher, repository):
    await store(repository, expires_at=NOW - timedelta(minutes=1))
    respx.post(GoogleConnector.TOKEN_URL).mock(
        return_value=httpx.Response(
            200,
            json={"access_token": "new-access", "refresh_token": "refresh-2", "expires_in": 60},
        )
    )

    await refresher.get_valid_access_token("user-1", "google")

    assert (await repository.get("user-1", "google")).refresh_token == "refresh-2"


@respx.mock
@pytest.mark.asyncio
async def test_failed_refresh_leaves_row_unchanged(refresher, repository):
    """Test a rejected refresh returns None and does not touch the row."""
    original = await store(repository, expires_at=NOW - timedelta(minutes=1))
    respx.post(GoogleConnector.TOKEN_URL).mock(
        return_value=httpx.Response(400, json={"error": "invalid_grant"})
    )

    token = await refresher.get_valid_access_token("user-1", "google")

    stored = await repository.get("user-1", "google")
    assert token is None
    assert stored.access_token == original.access_token
    assert stored.expires_at == original.expires_at
    assert stored.refresh_token == original.refresh_token


@respx.mock
@pytest.mark.asyncio
async def test_refresh_timeout_returns_none(refresher, repository):
    await store(repository, expires_at=NOW - timedelta(minutes=1))
    respx.post(GoogleConnector.TOKEN_URL).mock(side_effect=httpx.ReadTimeout("slow"))

    assert await refresher.get_valid_access_token("user-1", "google") is None


@respx.mock
@pytest.mark.asyncio
async def test_missing_refresh_token_returns_none(refresher, repository):
    await store(repository, refresh_token=None, expires_at=NOW)

    assert await refresher.get_valid_access_token("user-1", "google") is None
    assert respx.calls.call_count == 0


@pytest.mark.asyncio
async def test_fresh_token_without_refresh_token_returns_none(refresher, repository):
    """Test a row that can never be renewed asks for a reconnect even while fresh."""
    await store(
        repository,
        provider="facebook",
        refresh_token=None,
        expires_at=NOW + timedelta(days=30),
    )

    assert await refresher.get_valid_access_token("user-1", "facebook") is None


@respx.mock
@pytest.mark.asyncio
async def test_provider_without_refresh_grant_returns_none(refresher, repository):
    """Test Facebook rows past expiry need a reconnect."""
    await store(repository, provider="facebook", expires_at=NOW)

    assert await refresher.get_valid_access_token("user-1", "facebook") is None
    assert respx.calls.call_count == 0


@pytest.mark.asyncio
async def test_no_credential_returns_none(refresher):
    assert await refresher.get_valid_access_token("user-1", "google") is None


@pytest.mark.asyncio
async def test_disconnected_credential_returns_none(refresher, repository):
    await store(repository, connected=False)

    assert await refresher.get_valid_access_token("user-1", "google") is None


@pytest.mark.asyncio
async def test_unconfigured_provider_returns_none(repository):
    """Test a registry error is not fatal."""
    registry = MagicMock()
    registry.get.side_effect = ConfigurationError("google is not configured")
    refresher = TokenRefresher(repository, registry, clock=lambda: NOW)
    await store(repository, expires_at=NOW)

    assert await refresher.get_valid_access_token("user-1", "google") is None


@respx.mock
@pytest.mark.asyncio
async def test_force_refresh_ignores_expiry(refresher, repository):
    await store(repository, expires_at=NOW + timedelta(days=30))
    route = respx.post(GoogleConnector.TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"access_token": "forced", "expires_in": 3600})
    )

    credential = await refresher.force_refresh("user-1", "google")

    assert route.call_count == 1
    assert credential.access_token == "forced"
    assert credential.expires_at == NOW + timedelta(hours=1)


@pytest.mark.asyncio
async def test_force_refresh_without_credential(refresher):
    assert await refresher.force_refresh("user-1", "google") is None


@respx.mock
@pytest.mark.asyncio
async def test_invalid_expiry_in_refresh_returns_none(refresher, repository):
    """Test an unparseable expiry from the provider is not fatal."""
    original = await store(repository, expires_at=NOW - timedelta(minutes=1))
    respx.post(GoogleConnector.TOKEN_URL).mock(
        return_value=httpx.Response(
            200, json={"access_token": "new-access", "expires_in": "3599.x"}
        )
    )

    token = await refresher.get_valid_access_token("user-1", "google")

    stored = await repository.get("user-1", "google")
    assert token is None
    assert stored.access_token == original.access_token
