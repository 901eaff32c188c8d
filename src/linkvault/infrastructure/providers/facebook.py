"""
Facebook connector.

Graph API v20.0. The short-lived user token is traded for a long-lived
one, and the first managed page is recorded so posts can target it.
Long-lived tokens cannot be refreshed; the user reconnects before expiry.
"""

import httpx

from linkvault.domain.models import AccountProfile, TokenSet
from linkvault.domain.services.connector_base import AuthorizationCodeConnector

# Graph omits expires_in for some long-lived tokens; they last about 60 days
DEFAULT_LONG_LIVED_SECONDS = 60 * 24 * 60 * 60


class FacebookConnector(AuthorizationCodeConnector):
    """OAuth 2.0 connector for Facebook pages."""

    GRAPH_URL = "https://graph.facebook.com/v20.0"
    AUTHORIZE_URL = "https://www.facebook.com/v20.0/dialog/oauth"
    TOKEN_URL = f"{GRAPH_URL}/oauth/access_token"
    ACCOUNTS_URL = f"{GRAPH_URL}/me/accounts"
    SCOPES = (
        "pages_show_list",
        "pages_read_engagement",
        "pages_manage_posts",
        "instagram_basic",
        "instagram_content_publish",
        "business_management",
    )
    SCOPE_SEPARATOR = ","

    supports_refresh = False

    @property
    def provider_name(self) -> str:
        """Provider identifier."""
        return "facebook"

    async def exchange_code(
        self,
        client: httpx.AsyncClient,
        code: str,
        code_verifier: str | None,
    ) -> TokenSet:
        """Graph takes the code exchange as a GET with query parameters."""
        params = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "code": code,
        }
        return await self.request_token(client, "GET", self.TOKEN_URL, params=params)

    async def extend_token(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> TokenSet:
        """Trades the short-lived user token for a long-lived one."""
        params = {
            "grant_type": "fb_exchange_token",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "fb_exchange_token": tokens.access_token,
        }
        long_lived = await self.request_token(
            client, "GET", self.TOKEN_URL, params=params
        )
        if long_lived.expires_in is None:
            long_lived.expires_in = DEFAULT_LONG_LIVED_SECONDS
        return long_lived

    async def fetch_profile(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> AccountProfile:
        """
        Records the first page the user manages.

        Optional: a user with no pages, or a failed call, still connects.
        """
        body = await self.request_json(
            client,
            "GET",
            self.ACCOUNTS_URL,
            params={"access_token": tokens.access_token},
        )
        pages = body.get("data") or []
        first_page = pages[0] if pages else {}
        return AccountProfile(
            account_id=first_page.get("id"),
            metadata={
                "page_id": first_page.get("id"),
                "page_name": first_page.get("name"),
                "page_access_token": first_page.get("access_token"),
            },
        )
