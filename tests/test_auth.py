"""Tests for OAuth token requests and the refreshing token provider."""

import asyncio
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs

import httpx
import pytest

from coinloom.auth import Credential, OAuthTokenProvider, refresh_tokens, request_tokens
from coinloom.config import CoinloomSettings, get_settings
from coinloom.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DeserializationError,
    TransportError,
)
from coinloom.models import AuthResponse

from .conftest import TOKEN_URL

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)

TOKEN_SET = {
    "access_token": "new-access",
    "refresh_token": "new-refresh",
    "token_type": "bearer",
    "expires_in": 7200,
    "scope": "user balance",
}


def form_of(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


@pytest.fixture
def credential() -> Credential:
    return Credential(
        access_token="old-access",
        refresh_token="old-refresh",
        expires_at=NOW - timedelta(minutes=1),
    )


@pytest.fixture
def provider(credential) -> OAuthTokenProvider:
    return OAuthTokenProvider(
        credential, "client-id", "client-secret", token_url=TOKEN_URL, clock=lambda: NOW
    )


# --- request_tokens / refresh_tokens ---


@pytest.mark.asyncio
async def test_request_tokens_exchanges_code(httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, method="POST", json=TOKEN_SET)

    response = await request_tokens(
        "client-id", "client-secret", "https://example.com/cb", "auth-code", token_url=TOKEN_URL
    )

    assert response.access_token == "new-access"
    assert response.expires_in == 7200
    assert form_of(httpx_mock.get_request()) == {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "grant_type": "authorization_code",
        "code": "auth-code",
        "redirect_uri": "https://example.com/cb",
    }


@pytest.mark.asyncio
async def test_refresh_tokens_sends_refresh_grant(httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, method="POST", json=TOKEN_SET)

    await refresh_tokens("client-id", "client-secret", "old-refresh", token_url=TOKEN_URL)

    form = form_of(httpx_mock.get_request())
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "old-refresh"


@pytest.mark.asyncio
async def test_rejected_request_raises_redacted_authentication_error(httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, status_code=401, json={"error": "invalid_grant"})

    with pytest.raises(AuthenticationError) as exc_info:
        await request_tokens(
            "client-id", "client-secret", "https://example.com/cb", "auth-code", token_url=TOKEN_URL
        )

    error = exc_info.value
    assert error.status_code == 401
    assert error.parameters["code"] == "auth-code"
    rendered = str(error)
    assert "401" in rendered
    assert "{grant_type,authorization_code}" in rendered
    assert "{client_id,client-id}" in rendered
    assert "client-secret" not in rendered
    assert "auth-code" not in rendered
    assert "{client_secret,***}" in rendered


@pytest.mark.asyncio
async def test_unexpected_token_body_raises_deserialization_error(httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, json={"token_type": "bearer"})

    with pytest.raises(DeserializationError):
        await refresh_tokens("client-id", "client-secret", "r", token_url=TOKEN_URL)


@pytest.mark.asyncio
async def test_token_request_network_error_raises_transport_error(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectTimeout("timed out"))

    with pytest.raises(TransportError) as exc_info:
        await refresh_tokens("client-id", "client-secret", "r", token_url=TOKEN_URL)

    assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)


# --- Credential ---


def test_credential_from_auth_response():
    credential = Credential.from_auth_response(
        AuthResponse.model_validate(TOKEN_SET), issued_at=NOW
    )

    assert credential.expires_at == NOW + timedelta(hours=2)
    assert "new-access" not in repr(credential)


# --- OAuthTokenProvider ---


def test_provider_requires_client_credentials(credential):
    with pytest.raises(ConfigurationError):
        OAuthTokenProvider(credential, None, "client-secret")
    with pytest.raises(ConfigurationError):
        OAuthTokenProvider(credential, "client-id", "")


@pytest.mark.asyncio
async def test_provider_refresh_replaces_credential(provider, httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, json=TOKEN_SET)

    await provider.refresh()

    assert await provider.get_access_token() == "new-access"
    assert await provider.get_expiration() == NOW + timedelta(seconds=7200)
    assert provider.credential.refresh_token == "new-refresh"
    assert form_of(httpx_mock.get_request())["refresh_token"] == "old-refresh"
    await provider.async_close()


@pytest.mark.asyncio
async def test_concurrent_refreshes_share_one_token_request(provider, httpx_mock):
    async def slow_token_endpoint(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.01)
        return httpx.Response(200, json=TOKEN_SET)

    httpx_mock.add_callback(slow_token_endpoint, url=TOKEN_URL)

    await asyncio.gather(provider.refresh(), provider.refresh(), provider.refresh())

    assert len(httpx_mock.get_requests()) == 1
    assert await provider.get_access_token() == "new-access"
    await provider.async_close()


@pytest.mark.asyncio
async def test_on_refresh_receives_new_credential(credential, httpx_mock):
    received: list[Credential] = []
    provider = OAuthTokenProvider(
        credential,
        "client-id",
        "client-secret",
        token_url=TOKEN_URL,
        on_refresh=received.append,
        clock=lambda: NOW,
    )
    httpx_mock.add_response(url=TOKEN_URL, json=TOKEN_SET)

    await provider.refresh()

    assert [c.access_token for c in received] == ["new-access"]
    await provider.async_close()


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_credential(provider, credential, httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, status_code=400, json={"error": "invalid_grant"})

    with pytest.raises(AuthenticationError):
        await provider.refresh()

    assert provider.credential is credential
    await provider.async_close()


@pytest.mark.asyncio
async def test_from_auth_response_builds_provider():
    provider = OAuthTokenProvider.from_auth_response(
        AuthResponse.model_validate(TOKEN_SET), "client-id", "client-secret"
    )

    assert await provider.get_access_token() == "new-access"
    assert await provider.get_expiration() > datetime.now(UTC)


@pytest.mark.asyncio
async def test_from_settings_uses_configured_client_and_token_url(credential, httpx_mock):
    settings = CoinloomSettings(
        _env_file=None,
        token_url=TOKEN_URL,
        client_id="settings-client",
        client_secret="settings-secret",
    )
    provider = OAuthTokenProvider.from_settings(credential, settings, clock=lambda: NOW)
    httpx_mock.add_response(url=TOKEN_URL, json=TOKEN_SET)

    await provider.refresh()

    form = form_of(httpx_mock.get_request())
    assert form["client_id"] == "settings-client"
    assert form["client_secret"] == "settings-secret"
    await provider.async_close()


def test_from_settings_requires_client_credentials(credential):
    with pytest.raises(ConfigurationError):
        OAuthTokenProvider.from_settings(
            credential, CoinloomSettings(_env_file=None, client_id=None, client_secret=None)
        )


@pytest.mark.asyncio
async def test_token_url_defaults_to_settings(monkeypatch, httpx_mock):
    monkeypatch.setenv("COINLOOM_TOKEN_URL", TOKEN_URL)
    get_settings.cache_clear()
    httpx_mock.add_response(url=TOKEN_URL, json=TOKEN_SET)

    try:
        response = await refresh_tokens("client-id", "client-secret", "old-refresh")
    finally:
        get_settings.cache_clear()

    assert response.refresh_token == "new-refresh"


def test_token_calls_are_exported_from_package():
    import coinloom

    assert coinloom.request_tokens is request_tokens
    assert coinloom.refresh_tokens is refresh_tokens
