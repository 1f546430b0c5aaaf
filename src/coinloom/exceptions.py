"""Custom exception classes for the coinloom library."""

from collections.abc import Iterable, Mapping

import httpx

REDACTED = "***"
"""Placeholder shown instead of secret parameter values."""

SECRET_PARAMETERS: frozenset[str] = frozenset(
    ["client_secret", "code", "refresh_token", "access_token"]
)
"""OAuth parameters whose values are never rendered in error messages."""


class CoinloomError(Exception):
    """Base exception class for all coinloom errors."""

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response | None = None,
        request: httpx.Request | None = None,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            response: Optional httpx.Response object associated with the error.
            request: Optional httpx.Request object associated with the error.
        """
        super().__init__(message)
        self.message = message
        self.response = response
        self.request = request

    def __str__(self) -> str:
        if self.response is not None:
            return f"{self.message} (Status: {self.response.status_code})"
        return self.message


class AuthenticationError(CoinloomError):
    """Raised when the OAuth token endpoint rejects an exchange or refresh.

    This may mean that invalid parameters were supplied, or that the user
    has revoked access to the application.

    Attributes:
        parameters: The parameters sent to the token endpoint. Secret values
            are kept so callers can inspect them, but are redacted in `str()`.
        status_code: The HTTP status returned by the token endpoint, or None
            if no response was received.
    """

    def __init__(
        self,
        parameters: Mapping[str, str],
        status_code: int | None,
        *,
        response: httpx.Response | None = None,
    ):
        self.parameters = dict(parameters)
        self.status_code = status_code
        super().__init__(
            f"Coinbase authorization failed with HTTP status {status_code}",
            response=response,
        )

    def redacted_parameters(self) -> dict[str, str]:
        """Returns the parameters with secret values replaced."""
        return {
            key: REDACTED if key in SECRET_PARAMETERS else value
            for key, value in self.parameters.items()
        }

    def __str__(self) -> str:
        rendered = ",".join(
            f"{{{key},{value}}}" for key, value in self.redacted_parameters().items()
        )
        return f"{self.message} and with these parameters: [{rendered}]"


class ResourceNotFoundError(CoinloomError):
    """Represents a resource not found error (404 Not Found).

    Attributes:
        endpoint: The endpoint path that was requested, without query string.
    """

    def __init__(self, endpoint: str, *, response: httpx.Response | None = None):
        self.endpoint = endpoint
        super().__init__(
            f"Could not find resource at this endpoint: {endpoint}",
            response=response,
        )


class ValidationError(CoinloomError):
    """Raised when a request object has required fields left unset.

    This is detected client-side, before any network call is made.

    Attributes:
        missing_fields: Dotted paths of the required fields that were unset.
    """

    def __init__(self, model_name: str, missing_fields: Iterable[str]):
        self.model_name = model_name
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"{model_name} is missing required fields: {', '.join(self.missing_fields)}"
        )


class DeserializationError(CoinloomError):
    """Raised when a response body cannot be decoded into the expected model."""


class TransportError(CoinloomError):
    """Represents a network-level failure (connection refused, timeout, DNS).

    The original `httpx` exception is always available as `__cause__`.
    """

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request, response=None)

    def __str__(self) -> str:
        if self.request is not None:
            return f"{self.message} (URL: {self.request.url.copy_remove_param('access_token')})"
        return self.message


class ClosedError(CoinloomError):
    """Raised when a client is used after it has been closed."""


class ConfigurationError(CoinloomError):
    """Represents an error in the library's configuration."""

    def __init__(self, message: str):
        super().__init__(message, response=None)

