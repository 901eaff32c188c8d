"""API Key Response Models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from linkvault.domain.models import StoredApiKey


class KeyResponseBase(BaseModel):
    """Serialized with camelCase names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SaveKeyResponse(KeyResponseBase):
    success: bool = True
    provider: str
    last_four: str
    is_valid: bool


class ValidateKeyResponse(KeyResponseBase):
    success: bool = True
    provider: str
    is_valid: bool
    message: str


class DeleteKeyResponse(KeyResponseBase):
    success: bool = True
    provider: str


class KeySummary(KeyResponseBase):
    """Masked view of a stored key."""

    provider: str
    last_four: str = Field(..., description="Final four characters of the key")
    is_valid: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_stored(cls, stored: StoredApiKey) -> "KeySummary":
        return cls(
            provider=stored.provider,
            last_four=stored.last_four,
            is_valid=stored.is_valid,
            created_at=stored.created_at,
            updated_at=stored.updated_at,
        )


class ListKeysResponse(KeyResponseBase):
    success: bool = True
    keys: list[KeySummary]
