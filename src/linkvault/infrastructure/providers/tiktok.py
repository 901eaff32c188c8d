"""
TikTok connector.

TikTok Login Kit v2 with PKCE. TikTok names the client id ``client_key``
and joins scopes with commas.
"""

import httpx

from linkvault.domain.models import AccountProfile, TokenSet
from linkvault.domain.services.connector_base import AuthorizationCodePKCEConnector


class TikTokConnector(AuthorizationCodePKCEConnector):
    """OAuth 2.0 + PKCE connector for the TikTok Content Posting API."""

    AUTHORIZE_URL = "https://www.tiktok.com/v2/auth/authorize/"
    TOKEN_URL = "https://open.tiktokapis.com/v2/oauth/token/"
    USER_INFO_URL = "https://open.tiktokapis.com/v2/user/info/"
    SCOPES = ("user.info.basic", "video.publish", "video.upload")
    SCOPE_SEPARATOR = ","
    CLIENT_ID_PARAM = "client_key"

    @property
    def provider_name(self) -> str:
        """Provider identifier."""
        return "tiktok"

    async def fetch_profile(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> AccountProfile:
        """
        Fetches the TikTok username and display name.

        Optional: a failure stores the connection without them.
        """
        body = await self.request_json(
            client,
            "GET",
            self.USER_INFO_URL,
            params={"fields": "open_id,union_id,avatar_url,display_name,username"},
            headers={"Authorization": f"Bearer {tokens.access_token}"},
        )
        user = body["data"]["user"]
        metadata = {
            "username": user.get("username"),
            "display_name": user.get("display_name"),
        }
        if tokens.raw.get("refresh_expires_in") is not None:
            metadata["refresh_expires_in"] = tokens.raw["refresh_expires_in"]
        return AccountProfile(
            account_id=user.get("open_id") or tokens.account_id,
            metadata=metadata,
        )
