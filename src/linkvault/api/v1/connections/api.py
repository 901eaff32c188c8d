"""
Connected account endpoints.

Starts OAuth flows, receives provider redirects and refreshes stored
tokens. Tokens never appear in a response; the callback answers with a
popup page that only reports success or failure.
"""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from linkvault.api.v1.connections.request import OAuthCallbackQuery
from linkvault.api.v1.connections.response import AuthorizeResponse, RefreshResponse
from linkvault.core.logging import logger
from linkvault.di import (
    ProviderRegistryDep,
    SecurityGateDep,
    SettingsDep,
    TokenRefresherDep,
    require_gate,
)
from linkvault.domain.errors import InvalidState, LinkVaultError, ProviderError
from linkvault.domain.models import AuditEvent
from linkvault.models import ProblemDetail
from linkvault.security import GateContext, GateOptions
from linkvault.security.gate import RequestInfo
from linkvault.utils.popup import get_popup_callback_html

router = APIRouter()

AUTHORIZE_OPTIONS = GateOptions(
    rate_limit_key="oauth-authorize",
    rate_limit_max=20,
    audit_action="oauth_authorize_started",
    resource_type="oauth",
)
REFRESH_OPTIONS = GateOptions(
    rate_limit_key="oauth-refresh",
    rate_limit_max=20,
    audit_action="oauth_token_refreshed",
    resource_type="oauth",
)

AuthorizeGate = Annotated[GateContext, Depends(require_gate(AUTHORIZE_OPTIONS))]
RefreshGate = Annotated[GateContext, Depends(require_gate(REFRESH_OPTIONS))]

# Subject recorded for failures that happen before a user is known
ANONYMOUS_SUBJECT = "anonymous"


@router.get(
    "/{provider}/authorize",
    response_model=AuthorizeResponse,
    responses={
        401: {"model": ProblemDetail},
        403: {"model": ProblemDetail},
        404: {"model": ProblemDetail},
        429: {"model": ProblemDetail},
    },
)
async def authorize(
    provider: str,
    gate: AuthorizeGate,
    registry: ProviderRegistryDep,
) -> AuthorizeResponse:
    """
    Starts the OAuth authorization flow for the authenticated user.

    Args:
        provider: Provider id (tiktok, facebook, instagram, linkedin, google)
        gate: Admitted request context
        registry: Provider registry

    Returns:
        Authorization URL carrying a signed, single-use state
    """
    connector = registry.get(provider)
    url = connector.build_authorization_url(gate.user_id)
    gate.resource_id = provider

    logger.info(f"OAuth flow started for {provider} by user {gate.user_id}")
    return AuthorizeResponse(provider=provider, authorization_url=url)


@router.get("/{provider}/callback", response_class=HTMLResponse)
async def oauth_callback(
    provider: str,
    request: Request,
    query: Annotated[OAuthCallbackQuery, Query()],
    registry: ProviderRegistryDep,
    gate: SecurityGateDep,
    settings: SettingsDep,
) -> HTMLResponse:
    """
    OAuth redirect target called by the provider.

    Public: the user is identified by the signed state, not a bearer token.
    The exchange and persist run shielded, so a client that closes the
    popup early does not leave a half-finished connection.

    Returns:
        Popup page reporting the outcome to the opener window
    """
    logger.info(f"OAuth callback received for provider: {provider}")

    try:
        connector = registry.get(provider)
        credential = await asyncio.shield(
            connector.connect(
                query.code, query.state, query.error, query.error_description
            )
        )
    except InvalidState as e:
        info = RequestInfo.from_request(request)
        await gate.audit(
            AuditEvent(
                user_id=ANONYMOUS_SUBJECT,
                action="oauth_invalid_state",
                resource_type="oauth_state",
                resource_id=provider,
                metadata={"reason": e.message},
                ip_address=info.ip_address,
                user_agent=info.user_agent,
            )
        )
        return _popup(provider, settings.app_origin, e)
    except LinkVaultError as e:
        logger.warning(f"OAuth callback for {provider} failed: {e.message}")
        return _popup(provider, settings.app_origin, e)

    logger.info(f"Connected {provider} for user {credential.user_id}")
    return HTMLResponse(
        get_popup_callback_html(provider, settings.app_origin, success=True)
    )


def _popup(provider: str, app_origin: str, error: LinkVaultError) -> HTMLResponse:
    reason = error.message if error.exposes_detail else error.title
    return HTMLResponse(
        get_popup_callback_html(provider, app_origin, success=False, error=reason),
        status_code=error.status_code,
    )


@router.post(
    "/{provider}/refresh",
    response_model=RefreshResponse,
    responses={
        401: {"model": ProblemDetail},
        403: {"model": ProblemDetail},
        429: {"model": ProblemDetail},
        502: {"model": ProblemDetail},
    },
)
async def refresh(
    provider: str,
    gate: RefreshGate,
    registry: ProviderRegistryDep,
    refresher: TokenRefresherDep,
) -> RefreshResponse:
    """
    Refreshes the stored access token now.

    Returns:
        New expiry; the token itself stays server-side

    Raises:
        ProviderError: If there is nothing to refresh or the provider refused
    """
    # Unknown providers are a 404, not a failed refresh
    registry.get(provider)

    credential = await refresher.force_refresh(gate.user_id, provider)
    if credential is None:
        raise ProviderError(
            f"Failed to refresh token. Please reconnect {provider}.",
            provider=provider,
        )

    gate.resource_id = provider
    return RefreshResponse(provider=provider, expires_at=credential.expires_at)
