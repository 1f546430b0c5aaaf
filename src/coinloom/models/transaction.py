"""Pydantic models for transactions and transfers."""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from .base import Amount, CoinbaseModel, PaginatedResponse, unwrap_items


class Party(CoinbaseModel):
    """Sender or recipient of a transaction."""

    id: str | None = None
    email: str | None = None
    name: str | None = None


class TransactionResponse(CoinbaseModel):
    """A single transaction on an account."""

    id: str | None = None
    created_at: datetime | None = None
    hsh: str | None = None
    amount: Amount | None = None
    request: bool | None = None
    status: str | None = None
    notes: str | None = None
    idem: str | None = None
    sender: Party | None = None
    recipient: Party | None = None
    recipient_address: str | None = None


class TransactionsResponse(PaginatedResponse):
    """One page of the `transactions` list."""

    current_user: Party | None = None
    balance: Amount | None = None
    native_balance: Amount | None = None
    transactions: list[TransactionResponse] = Field(default_factory=list)

    @field_validator("transactions", mode="before")
    @classmethod
    def unwrap_transactions(cls, v: Any) -> Any:
        return unwrap_items("transaction")(v)


class TransferResponse(CoinbaseModel):
    """A buy or sell transfer between Coinbase and a payment method."""

    id: str | None = None
    type: str | None = None
    code: str | None = None
    created_at: datetime | None = None
    fees: dict[str, Amount] | None = None
    payout_date: datetime | None = None
    transaction_id: str | None = None
    status: str | None = None
    btc: Amount | None = None
    subtotal: Amount | None = None
    total: Amount | None = None
    description: str | None = None


class TransfersResponse(PaginatedResponse):
    """One page of the `transfers` list."""

    transfers: list[TransferResponse] = Field(default_factory=list)

    @field_validator("transfers", mode="before")
    @classmethod
    def unwrap_transfers(cls, v: Any) -> Any:
        return unwrap_items("transfer")(v)
