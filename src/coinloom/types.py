# coinloom/types.py
"""Core type definitions and data structures for coinloom.

This module defines common types used throughout the library: the outgoing
request record, the send-function signature the transport layers compose
over, and helpers for building query parameters.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

SendFunc = Callable[[httpx.Request], Awaitable[httpx.Response]]
"""Type alias for an asynchronous send operation.

A send function takes a fully built `httpx.Request` and returns the
`httpx.Response` received for it. Transport decorators such as
`coinloom.transport.with_token_refresh` take one send function and return
another with the same signature.
"""

Decoder = Callable[[Any], Any]
"""Type alias for a per-call payload decoder.

Decoders receive the parsed JSON payload of a response and return the payload
to validate against the target model. They run in order, before validation.
"""


def set_param(params: httpx.QueryParams, key: str, value: Any) -> httpx.QueryParams:
    """Returns `params` with `key` set to `value`, or unchanged if `value` is None.

    `httpx.QueryParams` is immutable; an existing key is overwritten in place,
    so the last write wins.
    """
    if value is None:
        return params
    return params.set(key, value)


def build_params(**values: Any) -> httpx.QueryParams:
    """Builds query parameters from keyword arguments, skipping None values."""
    params = httpx.QueryParams()
    for key, value in values.items():
        params = set_param(params, key, value)
    return params


class OutgoingRequest(BaseModel):
    """Encapsulates the data for one API call before it is sent.

    Built fresh for every call and owned by that call.
    """

    method: str
    endpoint: str
    params: httpx.QueryParams = Field(default_factory=httpx.QueryParams)
    body: bytes | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def build_request(self, client: httpx.AsyncClient, base_url: str) -> httpx.Request:
        """Builds an httpx.Request for this call against `base_url`.

        The request is built by `client`, so its default headers (User-Agent,
        Accept) and timeout are merged in.
        """
        url = f"{base_url.rstrip('/')}/{self.endpoint.lstrip('/')}"
        return client.build_request(
            method=self.method,
            url=url,
            params=self.params,
            content=self.body,
            headers=self.headers,
        )
