"""
Instagram connector.

Instagram API with Instagram Login. The short-lived token is exchanged
for a 60-day token with ``ig_exchange_token``; the profile is mandatory
because posting needs the account id and type.
"""

import httpx

from linkvault.domain.models import AccountProfile, TokenSet
from linkvault.domain.services.connector_base import AuthorizationCodeConnector


class InstagramConnector(AuthorizationCodeConnector):
    """OAuth 2.0 connector for Instagram business accounts."""

    AUTHORIZE_URL = "https://api.instagram.com/oauth/authorize"
    TOKEN_URL = "https://api.instagram.com/oauth/access_token"
    LONG_LIVED_URL = "https://graph.instagram.com/access_token"
    PROFILE_URL = "https://graph.instagram.com/me"
    SCOPES = (
        "instagram_business_basic",
        "instagram_business_content_publish",
        "instagram_business_manage_messages",
        "instagram_business_manage_comments",
    )
    SCOPE_SEPARATOR = ","

    supports_refresh = False
    profile_required = True

    @property
    def provider_name(self) -> str:
        """Provider identifier."""
        return "instagram"

    async def extend_token(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> TokenSet:
        """Exchanges the short-lived token for a long-lived one."""
        params = {
            "grant_type": "ig_exchange_token",
            "client_secret": self.client_secret,
            "access_token": tokens.access_token,
        }
        long_lived = await self.request_token(
            client, "GET", self.LONG_LIVED_URL, params=params
        )
        # The long-lived response does not repeat the user id
        long_lived.account_id = long_lived.account_id or tokens.account_id
        return long_lived

    async def fetch_profile(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> AccountProfile:
        body = await self.request_json(
            client,
            "GET",
            self.PROFILE_URL,
            params={
                "fields": "id,username,account_type",
                "access_token": tokens.access_token,
            },
        )
        return AccountProfile(
            account_id=str(body["id"]),
            metadata={
                "username": body.get("username"),
                "account_type": body.get("account_type"),
            },
        )
