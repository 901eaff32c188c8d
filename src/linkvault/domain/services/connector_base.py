"""
Abstract base classes for provider connectors.

A connector owns one provider's OAuth 2.0 flow: building the authorization
URL, completing the callback (state verification, code exchange, optional
long-lived exchange, profile fetch) and refreshing tokens. Two variants
exist, plain authorization code and authorization code with PKCE; each
provider module subclasses one of them and fills in endpoints and parsing.
"""

from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

import httpx
from loguru import logger

from linkvault.domain.errors import (
    ExchangeError,
    InvalidRequest,
    InvalidState,
    ProfileFetchError,
    ProviderError,
)
from linkvault.domain.models import (
    AccountProfile,
    ConnectResult,
    ProviderCredential,
    TokenSet,
)
from linkvault.infrastructure.repositories import CredentialRepository, NonceStore
from linkvault.utils.pkce import (
    generate_code_challenge,
    generate_code_verifier,
    is_well_formed_verifier,
)
from linkvault.utils.security import (
    STATE_MAX_AGE_SECONDS,
    generate_nonce,
    is_valid_subject_id,
    sign_state,
    verify_state,
)

DEFAULT_TIMEOUT_SECONDS = 10.0


class ProviderConnector(ABC):
    """
    Base class for provider connectors.

    Subclasses declare ``AUTHORIZE_URL``, ``TOKEN_URL`` and ``SCOPES`` and
    implement ``fetch_profile``. Behavior that differs per provider
    (secondary exchange, refresh support, token body shape) is exposed as
    overridable hooks rather than branches in this class.
    """

    AUTHORIZE_URL: str = ""
    TOKEN_URL: str = ""
    SCOPES: tuple[str, ...] = ()
    SCOPE_SEPARATOR: str = " "
    CLIENT_ID_PARAM: str = "client_id"

    uses_pkce: bool = False
    supports_refresh: bool = True
    profile_required: bool = False

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        nonce_store: NonceStore,
        credentials: CredentialRepository,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        state_secret: str | None = None,
    ):
        """
        Initializes the connector.

        Args:
            client_id: Provider's client id (app id, client key)
            client_secret: Provider's client secret
            redirect_uri: Redirect URI registered with the provider
            nonce_store: Store that enforces single use of state nonces
            credentials: Repository the connected account is persisted to
            timeout: Timeout in seconds for every outbound call
            state_secret: Override for the state signing key
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.nonce_store = nonce_store
        self.credentials = credentials
        self.timeout = timeout
        self.state_secret = state_secret

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Provider identifier used in routes, state and storage.

        Returns:
            Provider name (tiktok, facebook, instagram, linkedin, google)
        """
        pass

    # Authorization URL

    def build_authorization_url(self, user_id: str) -> str:
        """
        Builds the URL the user is redirected to for consent.

        Args:
            user_id: Subject id the connection will belong to

        Returns:
            Provider authorization URL with a signed ``state``

        Raises:
            InvalidRequest: If the user id is not a well-formed identifier
        """
        if not is_valid_subject_id(user_id):
            raise InvalidRequest("Invalid user id")

        code_verifier = generate_code_verifier() if self.uses_pkce else None
        state = sign_state(
            user_id,
            self.provider_name,
            generate_nonce(),
            code_verifier=code_verifier,
            secret_key=self.state_secret,
        )

        params = self.authorization_params(state, code_verifier)
        logger.debug(
            f"Built {self.provider_name} authorization URL "
            f"(scopes={params.get('scope')}, pkce={self.uses_pkce})"
        )
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    def authorization_params(
        self, state: str, code_verifier: str | None
    ) -> dict[str, str]:
        """
        Query parameters for the authorization URL.

        Args:
            state: Signed state token
            code_verifier: PKCE verifier, when the variant uses one

        Returns:
            Parameter mapping
        """
        return {
            self.CLIENT_ID_PARAM: self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.SCOPE_SEPARATOR.join(self.SCOPES),
            "state": state,
        }

    # Callback

    async def handle_callback(
        self,
        code: str | None,
        state: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> ConnectResult:
        """
        Completes the authorization code flow.

        Everything that can be checked locally is checked before the first
        network call.

        Args:
            code: Authorization code from the redirect
            state: Signed state from the redirect
            error: Provider error code, if the user denied or the provider failed
            error_description: Provider error text

        Returns:
            ConnectResult ready to persist

        Raises:
            ProviderError: If the provider reported an error
            InvalidRequest: If code or state is missing
            InvalidState: If the state fails verification or was already used
            ExchangeError: If the provider rejected the code
            ProfileFetchError: If mandatory account metadata is unavailable
        """
        if error:
            raise ProviderError(
                error_description or error, provider=self.provider_name
            )
        if not code or not state:
            raise InvalidRequest("Missing code or state")

        payload = verify_state(state, secret_key=self.state_secret)
        if payload.get("provider") != self.provider_name:
            raise InvalidState("OAuth state was issued for another provider")
        code_verifier = self.verifier_from_state(payload)

        if not await self.nonce_store.consume(payload["nonce"], STATE_MAX_AGE_SECONDS):
            raise InvalidState("OAuth state has already been used")

        user_id = payload["sub"]
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            tokens = await self.exchange_code(client, code, code_verifier)
            tokens = await self.extend_token(client, tokens)
            profile = await self._load_profile(client, tokens)

        logger.info(f"Completed {self.provider_name} authorization for user {user_id}")
        return ConnectResult(
            user_id=user_id,
            provider=self.provider_name,
            tokens=tokens,
            profile=profile,
        )

    def verifier_from_state(self, payload: dict[str, Any]) -> str | None:
        """
        Recovers the code verifier carried in the state.

        Args:
            payload: Verified state payload

        Returns:
            The verifier, or None for variants that do not use one
        """
        return None

    async def persist(self, result: ConnectResult) -> ProviderCredential:
        """
        Stores the connected account.

        One upsert keyed by (user_id, provider); the last write wins.

        Args:
            result: Outcome of ``handle_callback``

        Returns:
            The stored credential
        """
        credential = result.to_credential()
        await self.credentials.upsert(credential)
        return credential

    async def connect(
        self,
        code: str | None,
        state: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> ProviderCredential:
        """Runs ``handle_callback`` followed by ``persist``."""
        result = await self.handle_callback(code, state, error, error_description)
        return await self.persist(result)

    # Token endpoint

    async def exchange_code(
        self,
        client: httpx.AsyncClient,
        code: str,
        code_verifier: str | None,
    ) -> TokenSet:
        """
        Exchanges the authorization code at the token endpoint.

        Args:
            client: HTTP client for this flow
            code: Authorization code
            code_verifier: PKCE verifier, when the variant uses one

        Returns:
            TokenSet from the provider
        """
        data = {
            self.CLIENT_ID_PARAM: self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
        }
        if code_verifier is not None:
            data["code_verifier"] = code_verifier
        return await self.request_token(client, "POST", self.TOKEN_URL, data=data)

    async def extend_token(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> TokenSet:
        """
        Trades a short-lived token for a long-lived one.

        Providers without a secondary exchange return the tokens as-is.
        """
        return tokens

    async def refresh(self, refresh_token: str) -> TokenSet:
        """
        Runs the refresh-token grant.

        Args:
            refresh_token: Stored refresh token

        Returns:
            New TokenSet (``refresh_token`` set only if the provider rotated it)

        Raises:
            ProviderError: If the provider has no refresh grant or rejects it
        """
        if not self.supports_refresh:
            raise ProviderError(
                f"{self.provider_name} tokens cannot be refreshed; reconnect instead",
                provider=self.provider_name,
            )

        data = {
            self.CLIENT_ID_PARAM: self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self.request_token(
                client, "POST", self.TOKEN_URL, data=data, error_cls=ProviderError
            )

    async def request_token(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        *,
        data: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        error_cls: type[ProviderError] = ExchangeError,
    ) -> TokenSet:
        """
        Calls a token endpoint and parses the response.

        Args:
            client: HTTP client
            method: HTTP method
            url: Token endpoint
            data: Form body
            params: Query parameters
            error_cls: Error raised when the provider rejects the request

        Returns:
            Parsed TokenSet

        Raises:
            ProviderError: On timeout or transport failure (retryable)
            error_cls: On a non-success response or a body without a token
        """
        body = await self.request_json(
            client, method, url, data=data, params=params, error_cls=error_cls
        )
        tokens = self.parse_token_response(body, error_cls=error_cls)
        if tokens is None:
            logger.error(
                f"{self.provider_name} token endpoint returned no access token: "
                f"{body.get('error') or body.get('message') or 'unknown error'}"
            )
            raise error_cls(
                "Provider did not return an access token",
                provider=self.provider_name,
            )
        return tokens

    async def request_json(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        *,
        error_cls: type[ProviderError] = ProviderError,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Performs one outbound call and decodes its JSON body.

        Raises:
            ProviderError: On timeout or transport failure (retryable)
            error_cls: On a non-success status or a non-JSON body
        """
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{self.provider_name} request timed out: {url}")
            raise ProviderError(
                "Provider request timed out",
                provider=self.provider_name,
                retryable=True,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"{self.provider_name} request failed: {e}")
            raise ProviderError(
                "Provider request failed",
                provider=self.provider_name,
                retryable=True,
            ) from e

        if not response.is_success:
            logger.error(
                f"{self.provider_name} returned {response.status_code} for {url}"
            )
            raise error_cls(
                f"Provider returned status {response.status_code}",
                provider=self.provider_name,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise error_cls(
                "Provider returned an unreadable response",
                provider=self.provider_name,
            ) from e
        if not isinstance(body, dict):
            raise error_cls(
                "Provider returned an unexpected response",
                provider=self.provider_name,
            )
        return body

    def parse_token_response(
        self,
        body: dict[str, Any],
        error_cls: type[ProviderError] = ExchangeError,
    ) -> TokenSet | None:
        """
        Maps a token endpoint body to a TokenSet.

        ``expires_in`` may arrive as a number or a numeric string; fractional
        values are truncated to whole seconds.

        Returns:
            TokenSet, or None if the body carries no access token

        Raises:
            error_cls: If ``expires_in`` is not a number
        """
        access_token = body.get("access_token")
        if not access_token:
            return None
        expires_in = body.get("expires_in")
        if expires_in is not None:
            try:
                expires_in = int(float(expires_in))
            except (TypeError, ValueError, OverflowError) as e:
                raise error_cls(
                    "Provider returned an invalid token expiry",
                    provider=self.provider_name,
                ) from e
        return TokenSet(
            access_token=access_token,
            refresh_token=body.get("refresh_token"),
            expires_in=expires_in,
            token_type=body.get("token_type") or "Bearer",
            account_id=_as_str(body.get("user_id") or body.get("open_id")),
            raw=body,
        )

    # Profile

    @abstractmethod
    async def fetch_profile(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> AccountProfile:
        """
        Fetches account metadata with the freshly issued token.

        Args:
            client: HTTP client for this flow
            tokens: Tokens that will be stored

        Returns:
            AccountProfile
        """
        pass

    async def _load_profile(
        self, client: httpx.AsyncClient, tokens: TokenSet
    ) -> AccountProfile:
        try:
            return await self.fetch_profile(client, tokens)
        except (ProviderError, httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            if self.profile_required:
                logger.error(f"{self.provider_name} profile fetch failed: {e}")
                raise ProfileFetchError(
                    "Failed to fetch account profile", provider=self.provider_name
                ) from e
            logger.warning(
                f"{self.provider_name} profile fetch failed, storing without it: {e}"
            )
            return AccountProfile(account_id=tokens.account_id, degraded=True)


class AuthorizationCodeConnector(ProviderConnector, ABC):
    """Plain authorization code flow; the client secret authenticates the exchange."""


class AuthorizationCodePKCEConnector(ProviderConnector, ABC):
    """
    Authorization code flow with PKCE.

    The 43-character verifier travels inside the signed state, and the
    S256 challenge is added to the authorization URL.
    """

    uses_pkce = True

    def authorization_params(
        self, state: str, code_verifier: str | None
    ) -> dict[str, str]:
        params = super().authorization_params(state, code_verifier)
        params["code_challenge"] = generate_code_challenge(code_verifier)
        params["code_challenge_method"] = "S256"
        return params

    def verifier_from_state(self, payload: dict[str, Any]) -> str | None:
        code_verifier = payload.get("cv")
        if not is_well_formed_verifier(code_verifier):
            raise InvalidState("OAuth state carries a malformed code verifier")
        return code_verifier


def _as_str(value: Any) -> str | None:
    return str(value) if value is not None else None
