"""Pydantic models for the authenticated Coinbase user."""

from typing import Annotated, Any

from pydantic import Field, field_validator

from ..serializer import REQUIRED
from .base import Amount, CoinbaseModel, RequestResponse, unwrap_items


class UserResponse(CoinbaseModel):
    """Profile of a Coinbase user."""

    id: str | None = None
    name: str | None = None
    email: str | None = None
    time_zone: str | None = None
    native_currency: str | None = None
    balance: Amount | None = None
    buy_level: int | None = None
    sell_level: int | None = None
    buy_limit: Amount | None = None
    sell_limit: Amount | None = None


class UsersResponse(CoinbaseModel):
    """Response of `GET users`; the API wraps each user as `{"user": {...}}`."""

    users: list[UserResponse] = Field(default_factory=list)

    @field_validator("users", mode="before")
    @classmethod
    def unwrap_users(cls, v: Any) -> Any:
        return unwrap_items("user")(v)


class UserDetails(CoinbaseModel):
    """Fields of a new user."""

    email: Annotated[str | None, REQUIRED] = None
    password: Annotated[str | None, REQUIRED] = None
    referrer_id: str | None = None
    client_id: str | None = None


class AddUserRequest(CoinbaseModel):
    """Body of `POST users`."""

    user: Annotated[UserDetails | None, REQUIRED] = None


class AddUserResponse(RequestResponse):
    """Response to creating a user."""

    user: UserResponse | None = None
    receive_address: str | None = None
