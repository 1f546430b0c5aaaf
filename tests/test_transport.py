"""Tests for the authenticating transport."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from coinloom.exceptions import TransportError
from coinloom.transport import stamp_access_token, with_token_refresh

from .conftest import FakeTokenProvider

EXPIRES_AT = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def clock_at(offset: timedelta):
    return lambda: EXPIRES_AT + offset


class RecordingSend:
    """Fake send function returning queued responses and recording URLs."""

    def __init__(self, *status_codes: int):
        self._status_codes = list(status_codes)
        self.urls: list[httpx.URL] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.urls.append(request.url)
        return httpx.Response(self._status_codes.pop(0), request=request)

    @property
    def tokens(self) -> list[str]:
        return [url.params["access_token"] for url in self.urls]


@pytest.fixture
def provider() -> FakeTokenProvider:
    return FakeTokenProvider(expires_at=EXPIRES_AT)


@pytest.fixture
def request_() -> httpx.Request:
    return httpx.Request("GET", "https://api.example.com/v1/accounts?page=1")


@pytest.mark.asyncio
async def test_token_expiring_within_margin_is_refreshed_first(provider, request_):
    """A call 30 seconds before expiry refreshes exactly once before sending."""
    send = RecordingSend(200)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(seconds=30))
    )

    response = await authenticated_send(request_)

    assert response.status_code == 200
    assert provider.refresh_count == 1
    assert send.tokens == ["token-2"]


@pytest.mark.asyncio
async def test_token_valid_beyond_margin_is_not_refreshed(provider, request_):
    """A call two minutes before expiry does not refresh."""
    send = RecordingSend(200)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(minutes=2))
    )

    await authenticated_send(request_)

    assert provider.refresh_count == 0
    assert send.tokens == ["token-1"]


@pytest.mark.asyncio
async def test_custom_refresh_margin(provider, request_):
    send = RecordingSend(200)
    authenticated_send = with_token_refresh(
        send,
        provider,
        refresh_margin=timedelta(minutes=5),
        clock=clock_at(-timedelta(minutes=2)),
    )

    await authenticated_send(request_)

    assert provider.refresh_count == 1


@pytest.mark.asyncio
async def test_unauthorized_is_retried_once_after_refresh(provider, request_):
    send = RecordingSend(401, 200)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )

    response = await authenticated_send(request_)

    assert response.status_code == 200
    assert provider.refresh_count == 1
    assert send.tokens == ["token-1", "token-2"]


@pytest.mark.asyncio
async def test_retry_response_is_returned_verbatim(provider, request_):
    """Whatever the retry returns is handed back without further retries."""
    send = RecordingSend(401, 500)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )

    response = await authenticated_send(request_)

    assert response.status_code == 500
    assert len(send.urls) == 2


@pytest.mark.asyncio
async def test_persistent_unauthorized_surfaces_after_one_retry(provider, request_):
    """Two 401s in a row: two sends, one refresh, the 401 is returned."""
    send = RecordingSend(401, 401)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )

    response = await authenticated_send(request_)

    assert response.status_code == 401
    assert len(send.urls) == 2
    assert provider.refresh_count == 1


@pytest.mark.asyncio
async def test_no_retry_when_token_was_refreshed_before_sending(provider, request_):
    send = RecordingSend(401)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(timedelta(minutes=5))
    )

    response = await authenticated_send(request_)

    assert response.status_code == 401
    assert len(send.urls) == 1
    assert provider.refresh_count == 1


@pytest.mark.asyncio
async def test_other_error_statuses_are_not_retried(provider, request_):
    send = RecordingSend(403)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )

    response = await authenticated_send(request_)

    assert response.status_code == 403
    assert provider.refresh_count == 0


@pytest.mark.asyncio
async def test_existing_access_token_is_overwritten(provider):
    send = RecordingSend(200)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )
    request = httpx.Request(
        "GET", "https://api.example.com/v1/accounts?access_token=stale&page=2"
    )

    await authenticated_send(request)

    assert send.urls[0].params.get_list("access_token") == ["token-1"]
    assert send.urls[0].params["page"] == "2"


def test_stamp_access_token_returns_stamped_copy():
    request = httpx.Request(
        "POST",
        "https://api.example.com/v1/accounts?access_token=stale",
        headers={"User-Agent": "coinloom-test"},
        content=b'{"account": {"name": "wallet"}}',
    )

    stamped = stamp_access_token(request, "abc")

    assert stamped is not request
    assert stamped.url.params["access_token"] == "abc"
    assert stamped.headers["User-Agent"] == "coinloom-test"
    assert stamped.content == b'{"account": {"name": "wallet"}}'
    assert request.url.params["access_token"] == "stale"


@pytest.mark.asyncio
async def test_each_attempt_keeps_its_own_token(provider, request_):
    """The first attempt's request still shows the token it was sent with."""
    sent: list[httpx.Request] = []

    async def send(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(401 if len(sent) == 1 else 200, request=request)

    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )

    response = await authenticated_send(request_)

    assert [r.url.params["access_token"] for r in sent] == ["token-1", "token-2"]
    assert response.request is sent[1]
    assert "access_token" not in request_.url.params


@pytest.mark.asyncio
async def test_network_error_raises_transport_error(provider, request_):
    send = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )

    with pytest.raises(TransportError) as exc_info:
        await authenticated_send(request_)

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    send.assert_awaited_once()
    assert provider.refresh_count == 0


@pytest.mark.asyncio
async def test_cancelled_refresh_propagates_without_sending(request_):
    provider = FakeTokenProvider(expires_at=EXPIRES_AT)
    provider.refresh = AsyncMock(side_effect=asyncio.CancelledError())
    send = RecordingSend(200)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(timedelta(seconds=1))
    )

    with pytest.raises(asyncio.CancelledError):
        await authenticated_send(request_)

    assert send.urls == []
    assert provider.access_token == "token-1"


@pytest.mark.asyncio
async def test_failed_retry_refresh_propagates(provider, request_):
    provider.refresh = AsyncMock(side_effect=RuntimeError("token endpoint down"))
    send = RecordingSend(401)
    authenticated_send = with_token_refresh(
        send, provider, clock=clock_at(-timedelta(hours=1))
    )

    with pytest.raises(RuntimeError, match="token endpoint down"):
        await authenticated_send(request_)

    assert len(send.urls) == 1
