"""Pydantic models for receive addresses, contacts and payment methods."""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from .base import CoinbaseModel, PaginatedResponse, unwrap_items


class AddressResponse(CoinbaseModel):
    """A bitcoin receive address."""

    address: str | None = None
    callback_url: str | None = None
    label: str | None = None
    created_at: datetime | None = None


class AddressesResponse(PaginatedResponse):
    """One page of the `addresses` list."""

    addresses: list[AddressResponse] = Field(default_factory=list)

    @field_validator("addresses", mode="before")
    @classmethod
    def unwrap_addresses(cls, v: Any) -> Any:
        return unwrap_items("address")(v)


class ContactResponse(CoinbaseModel):
    """An email contact the user has sent to or requested from."""

    email: str | None = None


class ContactsResponse(PaginatedResponse):
    """One page of the `contacts` list."""

    contacts: list[ContactResponse] = Field(default_factory=list)

    @field_validator("contacts", mode="before")
    @classmethod
    def unwrap_contacts(cls, v: Any) -> Any:
        return unwrap_items("contact")(v)


class PaymentMethodResponse(CoinbaseModel):
    """A bank account or card linked for buys and sells."""

    id: str | None = None
    name: str | None = None
    can_buy: bool | None = None
    can_sell: bool | None = None


class PaymentMethodsResponse(CoinbaseModel):
    """Response of `GET payment_methods`."""

    payment_methods: list[PaymentMethodResponse] = Field(default_factory=list)
    default_buy: str | None = None
    default_sell: str | None = None

    @field_validator("payment_methods", mode="before")
    @classmethod
    def unwrap_payment_methods(cls, v: Any) -> Any:
        return unwrap_items("payment_method")(v)
