"""Coinloom: asynchronous client for the Coinbase v1 REST API.

This package provides an OAuth2-authenticating transport that refreshes
expiring or rejected tokens, typed request/response handling on top of
pydantic, and lazy page-by-page iteration over every listable resource
(accounts, transactions, transfers, addresses, applications, contacts).
"""

__version__ = "0.1.0"

from . import (
    auth,
    client,
    config,
    endpoints,
    exceptions,
    log_config,
    models,
    pagination,
    resources,
    serializer,
    transport,
    types,
)
from .auth import (
    Credential,
    OAuthTokenProvider,
    TokenProvider,
    refresh_tokens,
    request_tokens,
)
from .client import ApiClient, ClientState, CoinbaseClient
from .exceptions import (
    AuthenticationError,
    ClosedError,
    CoinloomError,
    DeserializationError,
    ResourceNotFoundError,
    TransportError,
    ValidationError,
)

__all__ = [
    "__version__",
    "ApiClient",
    "AuthenticationError",
    "ClientState",
    "ClosedError",
    "CoinbaseClient",
    "CoinloomError",
    "Credential",
    "DeserializationError",
    "OAuthTokenProvider",
    "ResourceNotFoundError",
    "TokenProvider",
    "TransportError",
    "ValidationError",
    "auth",
    "client",
    "config",
    "endpoints",
    "exceptions",
    "log_config",
    "models",
    "pagination",
    "resources",
    "refresh_tokens",
    "request_tokens",
    "serializer",
    "transport",
    "types",
]
