"""
LinkedIn connector.

OpenID Connect userinfo is mandatory; the organization pages the member
administers are optional and fetched through organizationAcls.
"""

import httpx
from loguru import logger

from linkvault.domain.errors import ProviderError
from linkvault.domain.models import AccountProfile, TokenSet
from linkvault.domain.services.connector_base import AuthorizationCodeConnector

ORGANIZATION_URN_PREFIX = "urn:li:organization:"


class LinkedInConnector(AuthorizationCodeConnector):
    """OAuth 2.0 connector for LinkedIn members and their organization pages."""

    AUTHORIZE_URL = "https://www.linkedin.com/oauth/v2/authorization"
    TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
    USERINFO_URL = "https://api.linkedin.com/v2/userinfo"
    ORGANIZATION_ACLS_URL = "https://api.linkedin.com/v2/organizationAcls"
    SCOPES = (
        "openid",
        "profile",
        "email",
        "w_member_social",
        "w_organization_social",
        "r_organization_social",
        "rw_organization_admin",
    )

    profile_required = True

    @property
    def provider_name(self) -> str:
        """Provider identifier."""
        return "linkedin"

    async def fetch_profile(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> AccountProfile:
        headers = {"Authorization": f"Bearer {tokens.access_token}"}
        body = await self.request_json(
            client, "GET", self.USERINFO_URL, headers=headers
        )

        return AccountProfile(
            account_id=body["sub"],
            metadata={
                "name": body.get("name"),
                "email": body.get("email"),
                "organizations": await self._fetch_organizations(client, headers),
            },
        )

    async def _fetch_organizations(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> list[dict[str, str | None]]:
        """Approved organization roles; empty on any failure."""
        try:
            body = await self.request_json(
                client,
                "GET",
                self.ORGANIZATION_ACLS_URL,
                params={
                    "q": "roleAssignee",
                    "projection": (
                        "(elements*(organization~(localizedName,vanityName),"
                        "roleAssignee,state))"
                    ),
                },
                headers={**headers, "X-Restli-Protocol-Version": "2.0.0"},
            )
        except ProviderError as e:
            logger.warning(f"LinkedIn organizations unavailable: {e}")
            return []

        organizations = []
        for element in body.get("elements") or []:
            urn = element.get("organization")
            if element.get("state") != "APPROVED" or not urn:
                continue
            details = element.get("organization~") or {}
            organizations.append(
                {
                    "id": urn.removeprefix(ORGANIZATION_URN_PREFIX),
                    "urn": urn,
                    "name": details.get("localizedName") or "Unknown Organization",
                    "vanityName": details.get("vanityName"),
                }
            )
        return organizations
