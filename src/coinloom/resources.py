"""Resource clients for the Coinbase API.

This module provides the base class and mixins shared by resource clients,
and one concrete client per Coinbase resource. Listable resources expose the
same two entry points through `PageableMixin`:

* `pages(...)` returns a `LazyPageSequence` for callers wanting explicit page
  boundaries;
* `iterate(...)` returns a `LazyElementSequence` of individual records.

Neither fetches anything until it is iterated.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx
from pydantic import BaseModel

from . import endpoints
from .exceptions import CoinloomError
from .log_config import logger
from .models import (
    AccountDetails,
    AccountResponse,
    AccountsResponse,
    AddAccountRequest,
    AddressesResponse,
    AddressResponse,
    AddUserRequest,
    AddUserResponse,
    Amount,
    ApplicationResponse,
    ApplicationResponseWrapper,
    ApplicationsResponse,
    ContactResponse,
    ContactsResponse,
    CreateApplicationRequest,
    CreateApplicationResponse,
    ModifyAccountResponse,
    PaginatedResponse,
    PaymentMethodsResponse,
    RequestResponse,
    TransactionResponse,
    TransactionsResponse,
    TransferResponse,
    TransfersResponse,
    UpdateAccountRequest,
    UserDetails,
    UserResponse,
    UsersResponse,
    expect_currency,
)
from .pagination import LazyElementSequence, LazyPageSequence, PageFetcher
from .serializer import DecodeOptions
from .types import build_params

if TYPE_CHECKING:
    from .client import ApiClient

PageT = TypeVar("PageT", bound=PaginatedResponse)
ItemT = TypeVar("ItemT")

BTC_AMOUNT = DecodeOptions(decoders=(expect_currency("BTC"),))
"""Decode options for balance endpoints, which always report bitcoin."""


class BaseResourceClient:
    """Base class for all resource clients.

    Attributes:
        _api_client: The `ApiClient` used for making HTTP requests.
    """

    def __init__(self, api_client: "ApiClient"):
        """Initialize the base resource client.

        Args:
            api_client: An instance of ApiClient for making HTTP requests.
        """
        self._api_client = api_client
        logger.debug(f"{self.__class__.__name__} initialized")


class PageableMixin(Generic[PageT, ItemT]):
    """Mixin building lazy page and element sequences over one list endpoint.

    To use this mixin, a class must:
    1. Inherit from `BaseResourceClient`.
    2. Define `_entity_path: str`, the list endpoint.
    3. Define `_page_model`, the `PaginatedResponse` subtype of one page.
    4. Implement `_items(page)`, returning the records on a page.
    """

    _api_client: "ApiClient"
    _entity_path: str
    _page_model: type[PageT]

    def _items(self, page: PageT) -> Sequence[ItemT]:
        raise NotImplementedError

    def _page_sequence(
        self,
        params: httpx.QueryParams | None = None,
        results_per_page: int | None = None,
        start_page: int = 1,
    ) -> LazyPageSequence[PageT]:
        if results_per_page is None:
            results_per_page = self._api_client.settings.default_results_per_page
        fetcher = PageFetcher(
            self._api_client,
            self._entity_path,
            self._page_model,
            results_per_page=results_per_page,
            params=params,
        )
        logger.debug(
            f"Paging {self._entity_path}: limit={results_per_page}, "
            f"start_page={start_page}, params={dict(fetcher.params)}"
        )
        return LazyPageSequence(fetcher, start_page=start_page)

    def _element_sequence(
        self,
        params: httpx.QueryParams | None = None,
        results_per_page: int | None = None,
        start_page: int = 1,
    ) -> LazyElementSequence[PageT, ItemT]:
        pages = self._page_sequence(params, results_per_page, start_page)
        return LazyElementSequence(pages, self._items)


class GettableMixin(Generic[ItemT]):
    """Mixin providing `get()` for endpoints of the form `<path>/<id>`.

    To use this mixin, a class must define `_entity_path: str` and
    `_entity_model`, the model a single-record response decodes into.
    """

    _api_client: "ApiClient"
    _entity_path: str
    _entity_model: type[BaseModel]

    async def _get_entity(
        self, entity_id: str, params: httpx.QueryParams | None = None
    ) -> Any:
        if not entity_id:
            raise ValueError(f"{self.__class__.__name__}.get() requires an id.")
        logger.info(f"Fetching {self._entity_path} entity with ID: {entity_id}")
        return await self._api_client.get(
            f"{self._entity_path}/{entity_id}", self._entity_model, params=params
        )


class UsersClient(BaseResourceClient):
    """Client for the authenticated user."""

    async def current(self) -> UserResponse:
        """Returns the user the access token belongs to.

        Raises:
            CoinloomError: If the API does not return exactly one user.
        """
        response = await self._api_client.get(endpoints.USERS, UsersResponse)
        if len(response.users) != 1:
            raise CoinloomError(
                f"Expected exactly one user from '{endpoints.USERS}', got {len(response.users)}."
            )
        return response.users[0]

    async def balance(self) -> Amount:
        """Returns the bitcoin balance of the user's primary account."""
        return await self._api_client.get(
            endpoints.ACCOUNT_BALANCE, Amount, options=BTC_AMOUNT
        )

    async def create(
        self,
        request: AddUserRequest | None = None,
        *,
        email: str | None = None,
        password: str | None = None,
    ) -> AddUserResponse:
        """Creates a new user, from a request or from an email and password."""
        if request is None:
            request = AddUserRequest(user=UserDetails(email=email, password=password))
        return await self._api_client.post(endpoints.USERS, request, AddUserResponse)


class AccountsClient(
    PageableMixin[AccountsResponse, AccountResponse], BaseResourceClient
):
    """Client for the `accounts` endpoints."""

    _entity_path = endpoints.ACCOUNTS
    _page_model = AccountsResponse

    def _items(self, page: AccountsResponse) -> Sequence[AccountResponse]:
        return page.accounts

    def pages(
        self, results_per_page: int | None = None, *, start_page: int = 1
    ) -> LazyPageSequence[AccountsResponse]:
        """Lazily pages through the user's accounts."""
        return self._page_sequence(None, results_per_page, start_page)

    def iterate(
        self, results_per_page: int | None = None
    ) -> LazyElementSequence[AccountsResponse, AccountResponse]:
        """Lazily iterates over the user's accounts."""
        return self._element_sequence(None, results_per_page)

    async def balance(self, account_id: str) -> Amount:
        """Returns the bitcoin balance of one account."""
        return await self._api_client.get(
            endpoints.ACCOUNT_BALANCE_BY_ID.format(id=account_id),
            Amount,
            options=BTC_AMOUNT,
        )

    async def create(
        self, request: AddAccountRequest | str | None = None
    ) -> ModifyAccountResponse:
        """Creates an account.

        Args:
            request: A full request, a name for the new account, or None to let
                the API pick a default name.
        """
        if isinstance(request, str):
            request = AddAccountRequest(account=AccountDetails(name=request))
        return await self._api_client.post(
            endpoints.ACCOUNTS, request, ModifyAccountResponse
        )

    async def make_primary(self, account_id: str) -> RequestResponse:
        """Makes an account the user's primary account."""
        return await self._api_client.post(
            endpoints.ACCOUNT_PRIMARY.format(id=account_id), None, RequestResponse
        )

    async def rename(
        self, account_id: str, request: UpdateAccountRequest | str
    ) -> ModifyAccountResponse:
        """Changes the name of an account."""
        if isinstance(request, str):
            request = UpdateAccountRequest(account=AccountDetails(name=request))
        return await self._api_client.put(
            endpoints.ACCOUNT.format(id=account_id), request, ModifyAccountResponse
        )

    async def delete(self, account_id: str) -> RequestResponse:
        """Deletes an account. The primary account cannot be deleted."""
        return await self._api_client.delete(
            endpoints.ACCOUNT.format(id=account_id), RequestResponse
        )


class TransactionsClient(
    PageableMixin[TransactionsResponse, TransactionResponse],
    GettableMixin[TransactionResponse],
    BaseResourceClient,
):
    """Client for the `transactions` endpoints.

    https://coinbase.com/api/doc/1.0/transactions/index.html
    """

    _entity_path = endpoints.TRANSACTIONS
    _page_model = TransactionsResponse
    _entity_model = TransactionResponse

    def _items(self, page: TransactionsResponse) -> Sequence[TransactionResponse]:
        return page.transactions

    def pages(
        self,
        account_id: str | None = None,
        results_per_page: int | None = None,
        *,
        start_page: int = 1,
    ) -> LazyPageSequence[TransactionsResponse]:
        """Lazily pages through transactions, optionally of one account."""
        return self._page_sequence(
            build_params(account_id=account_id), results_per_page, start_page
        )

    def iterate(
        self, account_id: str | None = None, results_per_page: int | None = None
    ) -> LazyElementSequence[TransactionsResponse, TransactionResponse]:
        """Lazily iterates over transactions, optionally of one account."""
        return self._element_sequence(
            build_params(account_id=account_id), results_per_page
        )

    async def get(
        self, transaction_id: str, account_id: str | None = None
    ) -> TransactionResponse:
        """Returns one transaction.

        https://coinbase.com/api/doc/1.0/transactions/show.html
        """
        return await self._get_entity(
            transaction_id, build_params(account_id=account_id)
        )


class TransfersClient(
    PageableMixin[TransfersResponse, TransferResponse], BaseResourceClient
):
    """Client for the `transfers` endpoint.

    https://coinbase.com/api/doc/1.0/transfers/index.html
    """

    _entity_path = endpoints.TRANSFERS
    _page_model = TransfersResponse

    def _items(self, page: TransfersResponse) -> Sequence[TransferResponse]:
        return page.transfers

    def pages(
        self,
        account_id: str | None = None,
        results_per_page: int | None = None,
        *,
        start_page: int = 1,
    ) -> LazyPageSequence[TransfersResponse]:
        return self._page_sequence(
            build_params(account_id=account_id), results_per_page, start_page
        )

    def iterate(
        self, account_id: str | None = None, results_per_page: int | None = None
    ) -> LazyElementSequence[TransfersResponse, TransferResponse]:
        return self._element_sequence(
            build_params(account_id=account_id), results_per_page
        )


class AddressesClient(
    PageableMixin[AddressesResponse, AddressResponse], BaseResourceClient
):
    """Client for the `addresses` endpoint."""

    _entity_path = endpoints.ADDRESSES
    _page_model = AddressesResponse

    def _items(self, page: AddressesResponse) -> Sequence[AddressResponse]:
        return page.addresses

    def pages(
        self,
        account_id: str | None = None,
        query: str | None = None,
        results_per_page: int | None = None,
        *,
        start_page: int = 1,
    ) -> LazyPageSequence[AddressesResponse]:
        return self._page_sequence(
            build_params(account_id=account_id, query=query),
            results_per_page,
            start_page,
        )

    def iterate(
        self,
        account_id: str | None = None,
        query: str | None = None,
        results_per_page: int | None = None,
    ) -> LazyElementSequence[AddressesResponse, AddressResponse]:
        return self._element_sequence(
            build_params(account_id=account_id, query=query), results_per_page
        )


class ApplicationsClient(
    PageableMixin[ApplicationsResponse, ApplicationResponse],
    GettableMixin[ApplicationResponseWrapper],
    BaseResourceClient,
):
    """Client for the OAuth `oauth/applications` endpoints.

    https://coinbase.com/api/doc/1.0/applications/index.html
    """

    _entity_path = endpoints.APPLICATIONS
    _page_model = ApplicationsResponse
    _entity_model = ApplicationResponseWrapper

    def _items(self, page: ApplicationsResponse) -> Sequence[ApplicationResponse]:
        return page.applications

    def pages(
        self, results_per_page: int | None = None, *, start_page: int = 1
    ) -> LazyPageSequence[ApplicationsResponse]:
        return self._page_sequence(None, results_per_page, start_page)

    def iterate(
        self, results_per_page: int | None = None
    ) -> LazyElementSequence[ApplicationsResponse, ApplicationResponse]:
        return self._element_sequence(None, results_per_page)

    async def get(self, application_id: str) -> ApplicationResponseWrapper:
        """Returns one application.

        Unlike the list, this endpoint wraps the record as `{"application": {...}}`.

        https://coinbase.com/api/doc/1.0/applications/show.html
        """
        return await self._get_entity(application_id)

    async def create(
        self, request: CreateApplicationRequest
    ) -> CreateApplicationResponse:
        """Registers a new OAuth application."""
        return await self._api_client.post(
            endpoints.APPLICATIONS, request, CreateApplicationResponse
        )


class ContactsClient(
    PageableMixin[ContactsResponse, ContactResponse], BaseResourceClient
):
    """Client for the `contacts` endpoint."""

    _entity_path = endpoints.CONTACTS
    _page_model = ContactsResponse

    def _items(self, page: ContactsResponse) -> Sequence[ContactResponse]:
        return page.contacts

    def pages(
        self,
        query: str | None = None,
        results_per_page: int | None = None,
        *,
        start_page: int = 1,
    ) -> LazyPageSequence[ContactsResponse]:
        return self._page_sequence(
            build_params(query=query), results_per_page, start_page
        )

    def iterate(
        self, query: str | None = None, results_per_page: int | None = None
    ) -> LazyElementSequence[ContactsResponse, ContactResponse]:
        return self._element_sequence(build_params(query=query), results_per_page)


class PaymentMethodsClient(BaseResourceClient):
    """Client for the `payment_methods` endpoint."""

    async def list(self) -> PaymentMethodsResponse:
        """Returns the user's payment methods and their buy/sell defaults."""
        return await self._api_client.get(
            endpoints.PAYMENT_METHODS, PaymentMethodsResponse
        )
