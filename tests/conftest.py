# tests/conftest.py
from datetime import UTC, datetime, timedelta

import pytest

from coinloom.client import CoinbaseClient
from coinloom.config import CoinloomSettings

BASE_URL = "https://api.example.com/v1"
TOKEN_URL = "https://api.example.com/oauth/token"


class FakeTokenProvider:
    """TokenProvider handing out `token-1`, `token-2`, ... on each refresh."""

    def __init__(self, expires_at: datetime):
        self.access_token = "token-1"
        self.expires_at = expires_at
        self.refresh_count = 0

    async def get_access_token(self) -> str:
        return self.access_token

    async def get_expiration(self) -> datetime:
        return self.expires_at

    async def refresh(self) -> None:
        self.refresh_count += 1
        self.access_token = f"token-{self.refresh_count + 1}"
        self.expires_at = self.expires_at + timedelta(hours=2)


@pytest.fixture
def token_provider() -> FakeTokenProvider:
    """A provider whose token is valid for another two hours."""
    return FakeTokenProvider(expires_at=datetime.now(UTC) + timedelta(hours=2))


@pytest.fixture
def settings() -> CoinloomSettings:
    return CoinloomSettings(base_url=BASE_URL, token_url=TOKEN_URL)


@pytest.fixture
def coinbase_client(token_provider, settings) -> CoinbaseClient:
    return CoinbaseClient(token_provider, settings)
