"""Authenticating transport for the Coinbase API.

The transport is a decorator over a send function: `with_token_refresh` takes
an inner `SendFunc` (usually `httpx.AsyncClient.send`) and returns a new one
that stamps the current access token on every request, refreshes tokens that
are about to expire, and retries a request exactly once when it is rejected
with 401 Unauthorized.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from http import HTTPStatus

import httpx
import tenacity
from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt

from .auth import TokenProvider, utcnow
from .exceptions import TransportError
from .log_config import logger
from .types import SendFunc

ACCESS_TOKEN_PARAM = "access_token"

DEFAULT_REFRESH_MARGIN = timedelta(minutes=1)
"""Tokens are refreshed this long before their recorded expiry."""


def stamp_access_token(request: httpx.Request, access_token: str) -> httpx.Request:
    """Returns a copy of `request` carrying `access_token` in its query string.

    Any previous `access_token` value is replaced. `request` itself is left
    untouched, so every attempt is sent as its own request object.
    """
    return httpx.Request(
        request.method,
        request.url.copy_set_param(ACCESS_TOKEN_PARAM, access_token),
        headers=request.headers,
        content=request.content,
        extensions=request.extensions,
    )


def redacted_url(request: httpx.Request) -> httpx.URL:
    """Returns the request URL without the access token, for logging."""
    return request.url.copy_remove_param(ACCESS_TOKEN_PARAM)


def _is_unauthorized(response: httpx.Response) -> bool:
    return response.status_code == HTTPStatus.UNAUTHORIZED


def _last_response(retry_state: tenacity.RetryCallState) -> httpx.Response:
    """Returns the final response as-is once the single retry is used up."""
    return retry_state.outcome.result()  # type: ignore[union-attr]


def with_token_refresh(
    send: SendFunc,
    token_provider: TokenProvider,
    *,
    refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
    clock: Callable[[], datetime] = utcnow,
) -> SendFunc:
    """Wraps `send` so that every request carries a valid access token.

    For each request:

    1. If the token expires within `refresh_margin`, it is refreshed first.
    2. The current access token is stamped into the query string.
    3. The request is sent.
    4. On 401 Unauthorized, and only if step 1 did not refresh, the token is
       refreshed, re-stamped and the request is sent once more. That second
       response is returned whatever its status.

    The token is read from `token_provider` after every refresh and never
    cached by the transport.

    Args:
        send: The inner send function.
        token_provider: Source of access tokens and refreshes.
        refresh_margin: How long before expiry a token is considered stale.
        clock: Returns the current timezone-aware time.

    Returns:
        SendFunc: The authenticating send function.

    Raises:
        TransportError: (from the returned function) on network failure.
        AuthenticationError: (from the returned function) if a refresh is rejected.
    """

    async def refresh_before_retry(retry_state: tenacity.RetryCallState) -> None:
        logger.info(
            f"Received 401 Unauthorized on attempt {retry_state.attempt_number}; "
            "refreshing tokens and retrying once."
        )
        await token_provider.refresh()

    async def authenticated_send(request: httpx.Request) -> httpx.Response:
        refreshed = False
        expires_at = await token_provider.get_expiration()
        if clock() > expires_at - refresh_margin:
            logger.info(
                f"Access token expires at {expires_at.isoformat()}; refreshing before sending."
            )
            await token_provider.refresh()
            refreshed = True

        async def attempt() -> httpx.Response:
            stamped = stamp_access_token(
                request, await token_provider.get_access_token()
            )
            logger.debug(f"Sending request: {stamped.method} {redacted_url(stamped)}")
            try:
                response = await send(stamped)
            except httpx.RequestError as e:
                logger.error(
                    f"Network error for {stamped.method} {redacted_url(stamped)}: {e}"
                )
                raise TransportError(
                    f"Network error for {stamped.method} request: {e}", request=stamped
                ) from e
            logger.debug(
                f"Received response: {response.status_code} for {redacted_url(stamped)}"
            )
            return response

        retrying = AsyncRetrying(
            stop=stop_after_attempt(1 if refreshed else 2),
            retry=retry_if_result(_is_unauthorized),
            before_sleep=refresh_before_retry,
            retry_error_callback=_last_response,
        )
        return await retrying(attempt)

    return authenticated_send
