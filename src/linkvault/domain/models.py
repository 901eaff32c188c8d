"""
Credential lifecycle records.

These are the shapes exchanged between connectors, the token refresher,
the key vault and the repositories. The persistence engine behind the
repositories owns the on-disk layout.
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


@dataclass
class TokenSet:
    """
    Tokens returned by a provider token endpoint.

    Attributes:
        access_token: Bearer token for provider API calls
        refresh_token: Token for the refresh grant, when the provider issues one
        expires_in: Access token lifetime in seconds, if reported
        token_type: Token type reported by the provider
        account_id: Account identifier returned alongside the tokens (TikTok
            ``open_id``, Instagram ``user_id``)
        raw: Untouched response body, never persisted
    """

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = "Bearer"
    account_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def expires_at(self, now: datetime | None = None) -> datetime | None:
        """Absolute expiry computed from ``expires_in``."""
        if self.expires_in is None:
            return None
        return (now or utcnow()) + timedelta(seconds=int(self.expires_in))


@dataclass
class AccountProfile:
    """
    Minimal account metadata fetched after a successful exchange.

    Attributes:
        account_id: Provider-side account identifier
        metadata: Provider-specific details (page id, organizations, username...)
        degraded: True when the profile call failed and was optional
    """

    account_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    degraded: bool = False


@dataclass
class ProviderCredential:
    """
    One connected account per (user, provider).

    Attributes:
        user_id: Owning subject id
        provider: Provider identifier (tiktok, facebook, ...)
        connected: Whether the account is currently connected
        external_account_id: Provider-side account id
        access_token: Current access token
        refresh_token: Refresh token, if the provider issued one
        expires_at: Access token expiry (UTC)
        metadata: Provider-specific metadata blob
        updated_at: Last write timestamp
    """

    user_id: str
    provider: str
    connected: bool = True
    external_account_id: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with ISO timestamps."""
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat() if self.expires_at else None
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProviderCredential":
        """Inverse of ``to_dict``."""
        values = dict(data)
        if values.get("expires_at"):
            values["expires_at"] = datetime.fromisoformat(values["expires_at"])
        if values.get("updated_at"):
            values["updated_at"] = datetime.fromisoformat(values["updated_at"])
        else:
            values.pop("updated_at", None)
        return cls(**values)


@dataclass
class ConnectResult:
    """
    Outcome of a completed OAuth callback, ready to persist.

    Attributes:
        user_id: Subject id recovered from the verified state
        provider: Provider identifier
        tokens: Long-lived token set that will be stored
        profile: Account metadata (possibly degraded)
    """

    user_id: str
    provider: str
    tokens: TokenSet
    profile: AccountProfile

    def to_credential(self, now: datetime | None = None) -> ProviderCredential:
        """Build the credential row this result upserts."""
        now = now or utcnow()
        return ProviderCredential(
            user_id=self.user_id,
            provider=self.provider,
            connected=True,
            external_account_id=self.profile.account_id or self.tokens.account_id,
            access_token=self.tokens.access_token,
            refresh_token=self.tokens.refresh_token,
            expires_at=self.tokens.expires_at(now),
            metadata=dict(self.profile.metadata),
            updated_at=now,
        )


@dataclass
class StoredApiKey:
    """
    Encrypted API key row per (user, key provider).

    Attributes:
        user_id: Owning subject id
        provider: Key provider (openai, gemini, perplexity, anthropic)
        ciphertext: Base64 ``IV || tag || ciphertext`` blob
        last_four: Display-only suffix of the plaintext key
        is_valid: Result of the last validation probe
        created_at: First save timestamp
        updated_at: Last write timestamp
    """

    user_id: str
    provider: str
    ciphertext: str
    last_four: str
    is_valid: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with ISO timestamps."""
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredApiKey":
        """Inverse of ``to_dict``."""
        values = dict(data)
        for key in ("created_at", "updated_at"):
            if values.get(key):
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)


@dataclass
class AuditEvent:
    """
    Append-only audit record.

    Attributes:
        user_id: Acting subject
        action: What happened (api_key_saved, oauth_invalid_state...)
        resource_type: Kind of resource touched
        resource_id: Specific resource, when there is one
        metadata: Extra non-secret context
        ip_address: Requester IP (x-forwarded-for / x-real-ip)
        user_agent: Requester user agent
        timestamp: When the event was recorded
    """

    user_id: str
    action: str
    resource_type: str = "api_key"
    resource_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with an ISO timestamp."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data
