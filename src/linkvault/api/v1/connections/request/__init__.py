"""Connection Request Models."""

from pydantic import BaseModel, Field


class OAuthCallbackQuery(BaseModel):
    """
    Query parameters a provider sends to the redirect URI.

    All fields are optional: a denied consent carries only ``error``.
    """

    code: str | None = Field(None, description="Authorization code")
    state: str | None = Field(None, description="Signed state")
    error: str | None = Field(None, description="Provider error code")
    error_description: str | None = Field(None, description="Provider error text")
