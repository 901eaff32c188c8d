"""Connection Response Models."""

from datetime import datetime

from pydantic import BaseModel, Field


class AuthorizeResponse(BaseModel):
    """Response with the provider authorization URL."""

    provider: str = Field(..., description="Provider id")
    authorization_url: str = Field(
        ..., description="URL to open in the consent popup"
    )


class RefreshResponse(BaseModel):
    """Outcome of an explicit token refresh. Tokens are never returned."""

    success: bool = Field(default=True, description="Whether the refresh succeeded")
    provider: str = Field(..., description="Provider id")
    expires_at: datetime | None = Field(None, description="New access token expiry")
