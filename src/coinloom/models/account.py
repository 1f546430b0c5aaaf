"""Pydantic models for Coinbase accounts and the requests that modify them."""

from datetime import datetime
from typing import Annotated

from pydantic import Field

from ..serializer import REQUIRED
from .base import Amount, CoinbaseModel, PaginatedResponse, RequestResponse


class AccountResponse(CoinbaseModel):
    """A single Coinbase account (wallet or vault)."""

    id: str | None = None
    name: str | None = None
    balance: Amount | None = None
    native_balance: Amount | None = None
    created_at: datetime | None = None
    primary: bool | None = None
    active: bool | None = None


class AccountsResponse(PaginatedResponse):
    """One page of the `accounts` list."""

    accounts: list[AccountResponse] = Field(default_factory=list)


class ModifyAccountResponse(RequestResponse):
    """Response to creating or renaming an account."""

    account: AccountResponse | None = None


class AccountDetails(CoinbaseModel):
    """Account fields accepted by the create and rename endpoints."""

    name: Annotated[str | None, REQUIRED] = None


class AddAccountRequest(CoinbaseModel):
    """Body of `POST accounts`."""

    account: Annotated[AccountDetails | None, REQUIRED] = None


class UpdateAccountRequest(CoinbaseModel):
    """Body of `PUT accounts/{id}`."""

    account: Annotated[AccountDetails | None, REQUIRED] = None
