"""Typed HTTP client for the Coinbase REST API.

This module provides the `ApiClient` class, which issues typed GET, POST, PUT
and DELETE calls through the authenticating transport, and the `CoinbaseClient`
facade exposing one resource client per Coinbase resource.
"""

import ssl
from datetime import timedelta
from enum import Enum
from http import HTTPStatus
from typing import Any, Self, TypeVar

import certifi
import httpx
from pydantic import BaseModel

from .auth import TokenProvider
from .config import CoinloomSettings, get_settings
from .exceptions import ClosedError, ResourceNotFoundError
from .log_config import logger
from .resources import (
    AccountsClient,
    AddressesClient,
    ApplicationsClient,
    ContactsClient,
    PaymentMethodsClient,
    TransactionsClient,
    TransfersClient,
    UsersClient,
)
from .serializer import DecodeOptions, Serializer
from .transport import redacted_url, with_token_refresh
from .types import OutgoingRequest, SendFunc

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class ClientState(Enum):
    """Lifecycle of an `ApiClient`."""

    OPEN = "open"
    CLOSED = "closed"


class ApiClient:
    """Asynchronous client issuing typed calls against the Coinbase API.

    Every call is built into an `OutgoingRequest`, sent through the
    authenticating transport and decoded by the `Serializer`. A 404 response
    raises `ResourceNotFoundError` before any attempt to decode its body;
    every other response is decoded into the requested model.

    The client owns its `httpx.AsyncClient` unless one is passed in. Once
    `aclose()` has been called every public method raises `ClosedError`.

    Attributes:
        _settings: Configuration settings for the client.
        _token_provider: Source of access tokens.
        _serializer: Converts request/response records to and from JSON.
        _base_url: The base URL for API requests.
        _http_client: The underlying httpx.AsyncClient.
        _should_close_client: Whether this instance owns `_http_client`.
        _send: The authenticating send function wrapping `_http_client.send`.
        _state: `ClientState.OPEN` until `aclose()` is called.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        settings: CoinloomSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        serializer: Serializer | None = None,
    ):
        """Initialize the ApiClient.

        Args:
            token_provider: Supplies and refreshes the OAuth access token.
            settings: Optional settings; defaults to `get_settings()`.
            http_client: Optional pre-configured httpx.AsyncClient instance.
            serializer: Optional serializer; defaults to `Serializer()`.
        """
        self._settings = settings or get_settings()
        self._token_provider = token_provider
        self._serializer = serializer or Serializer()
        self._base_url: str = self._settings.base_url.rstrip("/")

        self._should_close_client = http_client is None
        self._http_client = http_client or self._create_default_http_client()
        self._send: SendFunc = with_token_refresh(
            self._http_client.send,
            token_provider,
            refresh_margin=timedelta(seconds=self._settings.refresh_margin_seconds),
        )
        self._state = ClientState.OPEN
        logger.debug(f"{type(self).__name__} initialized for {self._base_url}.")

    def _create_default_http_client(self) -> httpx.AsyncClient:
        """Create a default httpx.AsyncClient with configured settings.

        Returns:
            httpx.AsyncClient: HTTP client verifying TLS against the certifi
                bundle and sending the configured User-Agent.
        """
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        kwargs: dict[str, Any] = {}
        if self._settings.request_timeout is not None:
            kwargs["timeout"] = self._settings.request_timeout
        return httpx.AsyncClient(
            verify=ssl_context,
            headers={
                "User-Agent": self._settings.user_agent,
                "Accept": "application/json",
            },
            **kwargs,
        )

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def settings(self) -> CoinloomSettings:
        return self._settings

    def _ensure_open(self) -> None:
        if self._state is ClientState.CLOSED:
            raise ClosedError(f"{type(self).__name__} has been closed.")

    async def request(
        self,
        method: str,
        endpoint: str,
        response_model: type[ResponseT],
        *,
        body: BaseModel | None = None,
        params: httpx.QueryParams | None = None,
        options: DecodeOptions | None = None,
    ) -> ResponseT:
        """Perform one typed call against `endpoint`.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            endpoint: Path relative to the base URL, e.g. "accounts/abc".
            response_model: Model the response body is decoded into.
            body: Optional request record; validated and serialized to JSON.
            params: Optional query parameters.
            options: Optional per-call decode options.

        Returns:
            ResponseT: The decoded response.

        Raises:
            ClosedError: If the client has been closed.
            ValidationError: If `body` has unset required fields. Nothing is sent.
            ResourceNotFoundError: If the API answers 404.
            DeserializationError: If the body does not fit `response_model`.
            TransportError: On network failure.
            AuthenticationError: If a token refresh is rejected.
        """
        self._ensure_open()

        headers: dict[str, str] = {}
        content: bytes | None = None
        if method.upper() in ("POST", "PUT"):
            content = self._serializer.serialize(body)
            headers["Content-Type"] = "application/json"

        outgoing = OutgoingRequest(
            method=method.upper(),
            endpoint=endpoint,
            params=params if params is not None else httpx.QueryParams(),
            body=content,
            headers=headers,
        )
        request = outgoing.build_request(self._http_client, self._base_url)
        response = await self._send(request)

        if response.status_code == HTTPStatus.NOT_FOUND:
            logger.info(f"Resource not found: {outgoing.method} {endpoint}")
            raise ResourceNotFoundError(endpoint, response=response)

        if not response.is_success:
            logger.warning(
                f"{outgoing.method} {redacted_url(request)} returned {response.status_code}; "
                f"decoding body as {response_model.__name__}."
            )
        return self._serializer.deserialize(response.content, response_model, options)

    async def get(
        self,
        endpoint: str,
        response_model: type[ResponseT],
        *,
        params: httpx.QueryParams | None = None,
        options: DecodeOptions | None = None,
    ) -> ResponseT:
        """GET `endpoint` and decode the response into `response_model`."""
        return await self.request(
            "GET", endpoint, response_model, params=params, options=options
        )

    async def post(
        self,
        endpoint: str,
        body: BaseModel | None,
        response_model: type[ResponseT],
        *,
        params: httpx.QueryParams | None = None,
        options: DecodeOptions | None = None,
    ) -> ResponseT:
        """POST `body` (or an empty payload) to `endpoint`."""
        return await self.request(
            "POST", endpoint, response_model, body=body, params=params, options=options
        )

    async def put(
        self,
        endpoint: str,
        body: BaseModel | None,
        response_model: type[ResponseT],
        *,
        params: httpx.QueryParams | None = None,
        options: DecodeOptions | None = None,
    ) -> ResponseT:
        """PUT `body` to `endpoint`."""
        return await self.request(
            "PUT", endpoint, response_model, body=body, params=params, options=options
        )

    async def delete(
        self,
        endpoint: str,
        response_model: type[ResponseT],
        *,
        params: httpx.QueryParams | None = None,
        options: DecodeOptions | None = None,
    ) -> ResponseT:
        """DELETE `endpoint`."""
        return await self.request(
            "DELETE", endpoint, response_model, params=params, options=options
        )

    async def aclose(self) -> None:
        """Close the client and, if owned, its underlying HTTP client.

        Calling this more than once has no further effect.
        """
        if self._state is ClientState.CLOSED:
            return
        self._state = ClientState.CLOSED
        if self._should_close_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.info(f"{type(self).__name__} internal HTTP client closed.")
        async_close = getattr(self._token_provider, "async_close", None)
        if callable(async_close):
            await async_close()

    async def __aenter__(self) -> Self:
        self._ensure_open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()


class CoinbaseClient(ApiClient):
    """Asynchronous client for the Coinbase v1 API.

    Resource clients for the different Coinbase resources are available as
    properties of this client.

    Typical usage:
    ```python
    provider = OAuthTokenProvider.from_auth_response(tokens, client_id, client_secret)
    async with CoinbaseClient(provider) as client:
        balance = await client.accounts.balance("536a541fa9393bb3c7000023")
        async for transaction in client.transactions.iterate(results_per_page=50):
            print(transaction.id, transaction.amount)
    ```
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        settings: CoinloomSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        serializer: Serializer | None = None,
    ):
        super().__init__(
            token_provider,
            settings,
            http_client=http_client,
            serializer=serializer,
        )
        self._users = UsersClient(api_client=self)
        self._accounts = AccountsClient(api_client=self)
        self._transactions = TransactionsClient(api_client=self)
        self._transfers = TransfersClient(api_client=self)
        self._addresses = AddressesClient(api_client=self)
        self._applications = ApplicationsClient(api_client=self)
        self._contacts = ContactsClient(api_client=self)
        self._payment_methods = PaymentMethodsClient(api_client=self)

    @property
    def users(self) -> UsersClient:
        """Provides access to the current user, their balance and user creation."""
        return self._users

    @property
    def accounts(self) -> AccountsClient:
        """Provides access to the AccountsClient."""
        return self._accounts

    @property
    def transactions(self) -> TransactionsClient:
        """Provides access to the TransactionsClient."""
        return self._transactions

    @property
    def transfers(self) -> TransfersClient:
        """Provides access to the TransfersClient."""
        return self._transfers

    @property
    def addresses(self) -> AddressesClient:
        """Provides access to the AddressesClient."""
        return self._addresses

    @property
    def applications(self) -> ApplicationsClient:
        """Provides access to the OAuth ApplicationsClient."""
        return self._applications

    @property
    def contacts(self) -> ContactsClient:
        """Provides access to the ContactsClient."""
        return self._contacts

    @property
    def payment_methods(self) -> PaymentMethodsClient:
        """Provides access to the PaymentMethodsClient."""
        return self._payment_methods
