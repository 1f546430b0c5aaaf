"""OAuth2 token handling for the Coinbase API.

This module contains the `TokenProvider` protocol consumed by the
authenticating transport, the `Credential` record it manages, a concrete
`OAuthTokenProvider` backed by the refresh-token grant, and the one-shot
`request_tokens`/`refresh_tokens` calls against the token endpoint.
"""

import asyncio
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Protocol

import httpx
import pydantic
from pydantic import BaseModel, Field

from .config import CoinloomSettings, get_settings
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    DeserializationError,
    TransportError,
)
from .log_config import logger
from .models import AuthResponse


def utcnow() -> datetime:
    """Returns the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


class Credential(BaseModel):
    """The token set of one client session.

    Attributes:
        access_token: Short-lived token sent with every API call.
        refresh_token: Longer-lived token used to obtain a new access token.
        expires_at: Best current estimate of when `access_token` expires.
            The API may enforce a different instant.
    """

    access_token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expires_at: datetime

    @classmethod
    def from_auth_response(
        cls, response: AuthResponse, *, issued_at: datetime | None = None
    ) -> "Credential":
        """Builds a credential from a token endpoint response."""
        issued_at = issued_at or utcnow()
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token,
            expires_at=issued_at + timedelta(seconds=response.expires_in),
        )


class TokenProvider(Protocol):
    """Protocol for the source of access tokens used by the transport.

    Implementations own the `Credential`. `refresh` may be called by several
    in-flight requests at once; implementations must serialize it so that an
    older token set never overwrites a newer one.
    """

    async def get_access_token(self) -> str:
        """Returns the current access token."""
        ...

    async def get_expiration(self) -> datetime:
        """Returns the expiry estimate of the current access token (timezone-aware)."""
        ...

    async def refresh(self) -> None:
        """Obtains a new token set and replaces the current one.

        Raises:
            AuthenticationError: If the token endpoint rejects the refresh.
        """
        ...


async def _request_token_set(
    parameters: Mapping[str, str],
    *,
    token_url: str,
    http_client: httpx.AsyncClient | None,
) -> AuthResponse:
    """POSTs `parameters` to the token endpoint and parses the token set."""
    client = http_client or httpx.AsyncClient()
    try:
        logger.debug(
            f"Requesting tokens from {token_url} with grant_type={parameters.get('grant_type')}"
        )
        try:
            response = await client.post(token_url, data=dict(parameters))
        except httpx.RequestError as e:
            logger.error(f"Network error requesting tokens from {token_url}: {e}")
            raise TransportError(f"Token request to {token_url} failed: {e}") from e
    finally:
        if http_client is None:
            await client.aclose()

    if not response.is_success:
        error = AuthenticationError(
            parameters, response.status_code, response=response
        )
        logger.error(str(error))
        raise error

    try:
        return AuthResponse.model_validate(response.json())
    except (ValueError, pydantic.ValidationError) as e:
        raise DeserializationError(
            f"Token endpoint returned an unexpected body: {e}", response=response
        ) from e


def _client_parameters(client_id: str, client_secret: str) -> dict[str, str]:
    return {"client_id": client_id, "client_secret": client_secret}


async def request_tokens(
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    code: str,
    *,
    token_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AuthResponse:
    """Exchanges an authorization code for the user's first token set.

    The code is produced by the application's OAuth login redirect; see
    https://coinbase.com/docs/api/authentication#oauth2.

    Args:
        client_id: The application's client id.
        client_secret: The application's secret.
        redirect_uri: Must match the redirect uri registered for the application.
        code: The authorization code received by the redirect callback.
        token_url: The token endpoint URL; defaults to `CoinloomSettings.token_url`.
        http_client: Optional client to send the request with.

    Returns:
        AuthResponse: The issued access and refresh tokens.

    Raises:
        AuthenticationError: If the token endpoint does not return a 2xx status.
        TransportError: If the request could not be sent.
    """
    parameters = _client_parameters(client_id, client_secret)
    parameters["grant_type"] = "authorization_code"
    parameters["code"] = code
    parameters["redirect_uri"] = redirect_uri
    return await _request_token_set(
        parameters,
        token_url=token_url or get_settings().token_url,
        http_client=http_client,
    )


async def refresh_tokens(
    client_id: str,
    client_secret: str,
    refresh_token: str,
    *,
    token_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AuthResponse:
    """Obtains a new token set using the user's current refresh token.

    Raises:
        AuthenticationError: If the token endpoint does not return a 2xx status.
        TransportError: If the request could not be sent.
    """
    parameters = _client_parameters(client_id, client_secret)
    parameters["grant_type"] = "refresh_token"
    parameters["refresh_token"] = refresh_token
    return await _request_token_set(
        parameters,
        token_url=token_url or get_settings().token_url,
        http_client=http_client,
    )


class OAuthTokenProvider:
    """Implements TokenProvider using the OAuth2 refresh-token grant.

    Refreshes are serialized by a lock. A caller that waited for the lock
    while another caller refreshed reuses the new credential instead of
    refreshing a second time.

    Attributes:
        _credential: The current token set.
        _client_id: The OAuth2 client ID.
        _client_secret: The OAuth2 client secret.
        _token_url: The URL of the OAuth2 token endpoint.
        _token_client: An internal httpx.AsyncClient for refresh requests.
        _refresh_lock: An asyncio.Lock serializing refreshes.
        _on_refresh: Optional callback receiving every new credential, e.g.
            to persist it.
    """

    def __init__(
        self,
        credential: Credential,
        client_id: str | None,
        client_secret: str | None,
        *,
        token_url: str | None = None,
        on_refresh: Callable[[Credential], None] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not client_id or not client_secret:
            raise ConfigurationError(
                "OAuthTokenProvider requires 'client_id' and 'client_secret'."
            )
        self._credential = credential
        self._client_id: str = client_id
        self._client_secret: str = client_secret
        self._token_url = token_url or get_settings().token_url
        self._on_refresh = on_refresh
        self._clock = clock
        self._token_client: httpx.AsyncClient | None = None
        self._refresh_lock = asyncio.Lock()
        logger.debug("OAuthTokenProvider initialized.")

    @classmethod
    def from_auth_response(
        cls,
        response: AuthResponse,
        client_id: str | None,
        client_secret: str | None,
        **kwargs,
    ) -> "OAuthTokenProvider":
        """Creates a provider from the result of `request_tokens`."""
        return cls(
            Credential.from_auth_response(response), client_id, client_secret, **kwargs
        )

    @classmethod
    def from_settings(
        cls,
        credential: Credential,
        settings: CoinloomSettings | None = None,
        **kwargs,
    ) -> "OAuthTokenProvider":
        """Creates a provider using the client id, secret and token URL from settings.

        Raises:
            ConfigurationError: If the settings lack `client_id` or `client_secret`.
        """
        settings = settings or get_settings()
        return cls(
            credential,
            settings.client_id,
            settings.client_secret,
            token_url=settings.token_url,
            **kwargs,
        )

    @property
    def credential(self) -> Credential:
        """The current token set."""
        return self._credential

    async def get_access_token(self) -> str:
        return self._credential.access_token

    async def get_expiration(self) -> datetime:
        return self._credential.expires_at

    async def _get_token_client(self) -> httpx.AsyncClient:
        """Lazily initializes the internal client used for refresh requests."""
        if self._token_client is None:
            self._token_client = httpx.AsyncClient(timeout=15.0)
        return self._token_client

    async def refresh(self) -> None:
        """Replaces the credential with a freshly issued one.

        If the refresh is cancelled or fails, the previous credential is left
        in place and the error propagates.
        """
        stale = self._credential
        async with self._refresh_lock:
            if self._credential is not stale:
                logger.debug("Credential already refreshed by a concurrent caller.")
                return

            logger.info(f"Refreshing access token at {self._token_url}")
            client = await self._get_token_client()
            response = await refresh_tokens(
                self._client_id,
                self._client_secret,
                stale.refresh_token,
                token_url=self._token_url,
                http_client=client,
            )
            self._credential = Credential.from_auth_response(
                response, issued_at=self._clock()
            )
            logger.info(
                f"Access token refreshed; expires at {self._credential.expires_at.isoformat()}"
            )
        if self._on_refresh is not None:
            self._on_refresh(self._credential)

    async def async_close(self) -> None:
        """Closes the internal HTTP client used for refresh requests."""
        if self._token_client:
            await self._token_client.aclose()
            self._token_client = None
            logger.debug("OAuthTokenProvider internal client closed.")
