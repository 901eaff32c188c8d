"""
Google connector.

Requests offline access with a forced consent screen so a refresh token
is issued on every connect.
"""

import httpx

from linkvault.domain.models import AccountProfile, TokenSet
from linkvault.domain.services.connector_base import AuthorizationCodeConnector


class GoogleConnector(AuthorizationCodeConnector):
    """OAuth 2.0 connector for Google Sheets and Drive."""

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
    SCOPES = (
        "https://www.googleapis.com/auth/spreadsheets",
        "https://www.googleapis.com/auth/drive.file",
        "https://www.googleapis.com/auth/userinfo.email",
        "https://www.googleapis.com/auth/userinfo.profile",
    )

    @property
    def provider_name(self) -> str:
        """Provider identifier."""
        return "google"

    def authorization_params(
        self, state: str, code_verifier: str | None
    ) -> dict[str, str]:
        params = super().authorization_params(state, code_verifier)
        params["access_type"] = "offline"  # Request refresh token
        params["prompt"] = "consent"  # Force consent screen to get refresh token
        return params

    async def fetch_profile(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> AccountProfile:
        body = await self.request_json(
            client,
            "GET",
            self.USERINFO_URL,
            headers={"Authorization": f"Bearer {tokens.access_token}"},
        )
        return AccountProfile(
            account_id=body.get("id"),
            metadata={"email": body.get("email"), "name": body.get("name")},
        )
