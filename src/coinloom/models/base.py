"""Base Pydantic models for Coinbase API records and response envelopes.

This module defines the foundations shared by every record in the `coinloom`
models package: the lenient base model, the fixed-point `Amount` type, the
paginated response envelope and the `success`/`errors` envelope returned by
write operations.
"""

from collections.abc import Callable
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..exceptions import DeserializationError


class CoinbaseModel(BaseModel):
    """Base model for all Coinbase records.

    Unknown fields are kept so that additions to the API do not break parsing,
    and fields can be populated by name or by alias.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Amount(CoinbaseModel):
    """A fixed-point amount of a currency, e.g. `{"amount": "1.5", "currency": "BTC"}`.

    Attributes:
        amount: The exact decimal value. Serialized back as a plain decimal
            string, never in exponent notation.
        currency: The ISO or crypto currency code.
    """

    amount: Decimal
    currency: str

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, v: Decimal) -> str:
        return format(v, "f")

    def __str__(self) -> str:
        return f"{self.amount:f} {self.currency}"


def expect_currency(currency: str) -> Callable[[Any], Any]:
    """Returns a decoder that rejects amounts denominated in another currency."""

    def decode(payload: Any) -> Any:
        if isinstance(payload, dict) and payload.get("currency") != currency:
            raise DeserializationError(
                f"Expected an amount in {currency}, got {payload.get('currency')!r}"
            )
        return payload

    return decode


def unwrap_items(key: str) -> Callable[[Any], Any]:
    """Builds a before-validator turning `[{key: {...}}, ...]` into `[{...}, ...]`.

    Several list endpoints wrap every element in a single-key object named
    after the resource.
    """

    def unwrap(value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            item[key] if isinstance(item, dict) and key in item else item
            for item in value
        ]

    return unwrap


class PaginatedResponse(CoinbaseModel):
    """Envelope fields common to every paginated list response.

    Attributes:
        total_count: Total number of records across all pages.
        num_pages: Total number of pages at the requested page size.
        current_page: The 1-based page number of this response.
    """

    total_count: int = 0
    num_pages: int = 0
    current_page: int = 1


class RequestResponse(CoinbaseModel):
    """Generic response to a write operation.

    Attributes:
        success: Whether the operation was applied.
        errors: Error messages returned by the API, if any.
    """

    success: bool = False
    errors: list[str] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def coerce_errors(cls, v: Any) -> Any:
        """Accept a single error string as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v
