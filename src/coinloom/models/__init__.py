"""Pydantic models for Coinbase API requests and responses."""

from .account import (
    AccountDetails,
    AccountResponse,
    AccountsResponse,
    AddAccountRequest,
    ModifyAccountResponse,
    UpdateAccountRequest,
)
from .application import (
    ApplicationDetails,
    ApplicationResponse,
    ApplicationResponseWrapper,
    ApplicationsResponse,
    CreateApplicationRequest,
    CreateApplicationResponse,
)
from .base import (
    Amount,
    CoinbaseModel,
    PaginatedResponse,
    RequestResponse,
    expect_currency,
)
from .directory import (
    AddressesResponse,
    AddressResponse,
    ContactResponse,
    ContactsResponse,
    PaymentMethodResponse,
    PaymentMethodsResponse,
)
from .oauth import AuthResponse
from .transaction import (
    Party,
    TransactionResponse,
    TransactionsResponse,
    TransferResponse,
    TransfersResponse,
)
from .user import AddUserRequest, AddUserResponse, UserDetails, UserResponse, UsersResponse

__all__ = [
    "AccountDetails",
    "AccountResponse",
    "AccountsResponse",
    "AddAccountRequest",
    "AddUserRequest",
    "AddUserResponse",
    "AddressResponse",
    "AddressesResponse",
    "Amount",
    "ApplicationDetails",
    "ApplicationResponse",
    "ApplicationResponseWrapper",
    "ApplicationsResponse",
    "AuthResponse",
    "CoinbaseModel",
    "ContactResponse",
    "ContactsResponse",
    "CreateApplicationRequest",
    "CreateApplicationResponse",
    "ModifyAccountResponse",
    "PaginatedResponse",
    "Party",
    "PaymentMethodResponse",
    "PaymentMethodsResponse",
    "RequestResponse",
    "TransactionResponse",
    "TransactionsResponse",
    "TransferResponse",
    "TransfersResponse",
    "UpdateAccountRequest",
    "UserDetails",
    "UserResponse",
    "UsersResponse",
    "expect_currency",
]
