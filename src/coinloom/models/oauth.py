"""Pydantic models for the OAuth2 token endpoint."""

from pydantic import Field

from .base import CoinbaseModel


class AuthResponse(CoinbaseModel):
    """Token set returned by `oauth/token` for code exchange and refresh."""

    access_token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    token_type: str = "bearer"
    expires_in: int = 7200
    scope: str | None = None
