"""Pydantic models for OAuth applications registered by the user."""

from datetime import datetime
from typing import Annotated

from pydantic import Field

from ..serializer import REQUIRED
from .base import CoinbaseModel, PaginatedResponse, RequestResponse


class ApplicationResponse(CoinbaseModel):
    """An OAuth application owned by the user."""

    id: str | None = None
    name: str | None = None
    redirect_uri: str | None = None
    num_users: int | None = None
    created_at: datetime | None = None
    client_id: str | None = None
    client_secret: str | None = Field(default=None, repr=False)


class ApplicationsResponse(PaginatedResponse):
    """One page of the `oauth/applications` list.

    Unlike most lists, elements here are not wrapped in a single-key object.
    """

    applications: list[ApplicationResponse] = Field(default_factory=list)


class ApplicationResponseWrapper(CoinbaseModel):
    """Response of `GET oauth/applications/{id}`, which wraps the application."""

    application: ApplicationResponse | None = None


class ApplicationDetails(CoinbaseModel):
    """Fields of a new OAuth application."""

    name: Annotated[str | None, REQUIRED] = None
    redirect_uri: Annotated[str | None, REQUIRED] = None


class CreateApplicationRequest(CoinbaseModel):
    """Body of `POST oauth/applications`."""

    application: Annotated[ApplicationDetails | None, REQUIRED] = None


class CreateApplicationResponse(RequestResponse):
    """Response to creating an OAuth application."""

    application: ApplicationResponse | None = None
