"""
Unit tests for the local file-based repositories and audit sinks.
"""

import json
import stat
from datetime import UTC, datetime, timedelta

import pytest

from linkvault.domain.models import AuditEvent, ProviderCredential, StoredApiKey
from linkvault.infrastructure.implementations.local import (
    FileAuditSink,
    LocalApiKeyRepository,
    LocalCredentialRepository,
    LogAuditSink,
)


@pytest.fixture
def credentials(tmp_path):
    return LocalCredentialRepository(base_dir=str(tmp_path))


@pytest.fixture
def api_keys(tmp_path):
    return LocalApiKeyRepository(base_dir=str(tmp_path))


def make_credential(**overrides) -> ProviderCredential:
    values = {
        "user_id": "user-1",
        "provider": "google",
        "external_account_id": "acct-1",
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expires_at": datetime(2030, 1, 1, tzinfo=UTC),
        "metadata": {"email": "user@example.com"},
    }
    values.update(overrides)
    return ProviderCredential(**values)


# ===========================
# Credential repository
# ===========================


@pytest.mark.asyncio
async def test_credential_upsert_and_get(credentials):
    """Test a stored credential reads back unchanged."""
    await credentials.upsert(make_credential())

    stored = await credentials.get("user-1", "google")

    assert stored.connected is True
    assert stored.access_token == "access-1"
    assert stored.expires_at == datetime(2030, 1, 1, tzinfo=UTC)
    assert stored.metadata == {"email": "user@example.com"}


@pytest.mark.asyncio
async def test_credential_get_missing_returns_none(credentials):
    assert await credentials.get("user-1", "tiktok") is None


@pytest.mark.asyncio
async def test_credential_upsert_last_write_wins(credentials):
    """Test one row per (user, provider)."""
    await credentials.upsert(make_credential(access_token="first"))
    await credentials.upsert(make_credential(access_token="second"))

    assert (await credentials.get("user-1", "google")).access_token == "second"


@pytest.mark.asyncio
async def test_credential_file_is_private(credentials, tmp_path):
    """Test credential files are only readable by the owner."""
    await credentials.upsert(make_credential())

    path = tmp_path / "credentials" / "user-1" / "google.json"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


@pytest.mark.asyncio
async def test_update_tokens_keeps_refresh_token_when_not_rotated(credentials):
    """Test the refresh token is only replaced when a new one is issued."""
    await credentials.upsert(make_credential())
    new_expiry = datetime.now(UTC) + timedelta(hours=1)

    updated = await credentials.update_tokens(
        "user-1", "google", access_token="access-2", expires_at=new_expiry
    )

    stored = await credentials.get("user-1", "google")
    assert updated is True
    assert stored.access_token == "access-2"
    assert stored.refresh_token == "refresh-1"
    assert stored.expires_at == new_expiry


@pytest.mark.asyncio
async def test_update_tokens_rotates_refresh_token(credentials):
    await credentials.upsert(make_credential())

    await credentials.update_tokens(
        "user-1", "google", "access-2", None, refresh_token="refresh-2"
    )

    assert (await credentials.get("user-1", "google")).refresh_token == "refresh-2"


@pytest.mark.asyncio
async def test_update_tokens_missing_row(credentials):
    assert await credentials.update_tokens("user-1", "google", "a", None) is False


@pytest.mark.asyncio
async def test_credential_delete(credentials):
    await credentials.upsert(make_credential())

    assert await credentials.delete("user-1", "google") is True
    assert await credentials.delete("user-1", "google") is False
    assert await credentials.get("user-1", "google") is None


@pytest.mark.asyncio
async def test_credential_rejects_path_traversal(credentials):
    """Test ids cannot escape the storage directory."""
    with pytest.raises(ValueError):
        await credentials.get("../other", "google")


# ===========================
# API key repository
# ===========================


def make_key(provider: str = "openai", **overrides) -> StoredApiKey:
    values = {
        "user_id": "user-1",
        "provider": provider,
        "ciphertext": "Y2lwaGVydGV4dA==",
        "last_four": "abcd",
    }
    values.update(overrides)
    return StoredApiKey(**values)


@pytest.mark.asyncio
async def test_api_key_upsert_preserves_created_at(api_keys):
    """Test replacing a key keeps its original creation time."""
    first = await api_keys.upsert(make_key())
    created_at = first.created_at

    second = await api_keys.upsert(make_key(last_four="wxyz"))

    stored = await api_keys.get("user-1", "openai")
    assert second.created_at == created_at
    assert stored.created_at == created_at
    assert stored.last_four == "wxyz"


@pytest.mark.asyncio
async def test_api_key_file_holds_no_plaintext(api_keys, tmp_path):
    """Test only ciphertext and the suffix are written."""
    await api_keys.upsert(make_key())

    data = json.loads((tmp_path / "api_keys" / "user-1.json").read_text())
    assert set(data["openai"]) == {
        "user_id",
        "provider",
        "ciphertext",
        "last_four",
        "is_valid",
        "created_at",
        "updated_at",
    }


@pytest.mark.asyncio
async def test_api_key_set_validity(api_keys):
    await api_keys.upsert(make_key())

    assert await api_keys.set_validity("user-1", "openai", False) is True
    assert (await api_keys.get("user-1", "openai")).is_valid is False
    assert await api_keys.set_validity("user-1", "gemini", False) is False


@pytest.mark.asyncio
async def test_api_key_list_sorted_by_provider(api_keys):
    for provider in ("perplexity", "anthropic", "openai"):
        await api_keys.upsert(make_key(provider))

    listed = await api_keys.list_for_user("user-1")

    assert [key.provider for key in listed] == ["anthropic", "openai", "perplexity"]
    assert await api_keys.list_for_user("user-2") == []


@pytest.mark.asyncio
async def test_api_key_delete(api_keys):
    await api_keys.upsert(make_key())

    assert await api_keys.delete("user-1", "openai") is True
    assert await api_keys.delete("user-1", "openai") is False


# ===========================
# Audit sinks
# ===========================


@pytest.mark.asyncio
async def test_file_audit_sink_appends_json_lines(tmp_path):
    """Test each event becomes one JSON line."""
    sink = FileAuditSink(path=str(tmp_path / "audit" / "events.jsonl"))

    await sink.append(AuditEvent(user_id="user-1", action="api_key_saved"))
    await sink.append(
        AuditEvent(user_id="user-1", action="api_key_deleted", resource_id="openai")
    )

    lines = (tmp_path / "audit" / "events.jsonl").read_text().splitlines()
    events = [json.loads(line) for line in lines]
    assert [e["action"] for e in events] == ["api_key_saved", "api_key_deleted"]
    assert events[1]["resource_id"] == "openai"
    assert "timestamp" in events[0]


@pytest.mark.asyncio
async def test_log_audit_sink_binds_event():
    """Test the log sink emits a bound loguru record."""
    from loguru import logger

    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="INFO")
    try:
        await LogAuditSink().append(
            AuditEvent(user_id="user-1", action="workflow_triggered")
        )
    finally:
        logger.remove(handler_id)

    audit = [r for r in records if "audit_event" in r["extra"]]
    assert audit[0]["extra"]["audit_event"]["action"] == "workflow_triggered"
