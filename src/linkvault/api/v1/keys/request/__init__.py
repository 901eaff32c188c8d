"""API Key Request Models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class KeyRequestBase(BaseModel):
    """Accepts both camelCase and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SaveKeyRequest(KeyRequestBase):
    """
    Request to store an API key.

    Attributes:
        provider: Key provider (openai, gemini, perplexity, anthropic)
        api_key: Plaintext key; encrypted before it is stored
        skip_validation: Skip the format pre-filter
    """

    provider: str = Field(..., description="Key provider", min_length=1)
    api_key: str = Field(..., description="API key", min_length=1, repr=False)
    skip_validation: bool = Field(default=False, description="Skip format check")


class ProviderKeyRequest(KeyRequestBase):
    """Request naming a stored key by provider."""

    provider: str = Field(..., description="Key provider", min_length=1)
