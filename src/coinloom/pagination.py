"""Lazy, page-by-page iteration over paginated Coinbase resources.

Three layers build on each other:

* `PageFetcher` fetches one numbered page of an endpoint and describes it.
* `LazyPageSequence` walks pages forward, one fetch per `advance()`.
* `LazyElementSequence` flattens a page sequence into its items, fetching the
  next page only when the current one is used up.

Both sequences are single-pass async iterators. Nothing is fetched before the
caller asks for it, and a sequence must not be advanced by two tasks at once.
"""

from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict

from .log_config import logger
from .models import PaginatedResponse
from .serializer import DecodeOptions
from .types import set_param

if TYPE_CHECKING:
    from .client import ApiClient

PageT = TypeVar("PageT", bound=PaginatedResponse)
ItemT = TypeVar("ItemT")


class PageDescriptor(BaseModel, Generic[PageT]):
    """One fetched page plus its continuation metadata.

    Attributes:
        page: The decoded page response.
        page_number: The 1-based number of this page.
        total_pages: The number of pages the API reported.
    """

    page: PageT
    page_number: int
    total_pages: int

    model_config = ConfigDict(frozen=True)

    @property
    def has_more(self) -> bool:
        """Whether a page after this one exists."""
        return self.page_number < self.total_pages

    @property
    def next_page_number(self) -> int | None:
        """The number of the following page, or None on the last page."""
        return self.page_number + 1 if self.has_more else None


class PageFetcher(Generic[PageT]):
    """Fetches single pages of one paginated endpoint.

    Attributes:
        endpoint: The endpoint path, e.g. "transactions".
        page_model: The `PaginatedResponse` subtype each page decodes into.
        results_per_page: Sent as `limit` when not None.
        params: Extra query parameters sent with every page request.
    """

    def __init__(
        self,
        api_client: "ApiClient",
        endpoint: str,
        page_model: type[PageT],
        *,
        results_per_page: int | None = None,
        params: httpx.QueryParams | None = None,
        options: DecodeOptions | None = None,
    ):
        self._api_client = api_client
        self.endpoint = endpoint
        self.page_model = page_model
        self.results_per_page = results_per_page
        self.params = params if params is not None else httpx.QueryParams()
        self._options = options

    async def fetch_page(self, page_number: int) -> PageDescriptor[PageT]:
        """Fetches page `page_number` (1-based) and describes it."""
        params = set_param(self.params, "page", page_number)
        params = set_param(params, "limit", self.results_per_page)
        page = await self._api_client.get(
            self.endpoint, self.page_model, params=params, options=self._options
        )
        logger.debug(
            f"Fetched {self.endpoint} page {page_number}/{page.num_pages} "
            f"({page.total_count} records in total)"
        )
        return PageDescriptor(
            page=page, page_number=page_number, total_pages=page.num_pages
        )


class SequenceState(Enum):
    """Lifecycle of a `LazyPageSequence`."""

    NOT_STARTED = "not_started"
    HAS_CURRENT_PAGE = "has_current_page"
    EXHAUSTED = "exhausted"


class LazyPageSequence(Generic[PageT]):
    """A forward-only sequence of pages fetched on demand.

    Each successful `advance()` performs exactly one page fetch. Once the last
    page has been passed the sequence is exhausted and further calls return
    False without any I/O.

    Usage:
    ```python
    async for descriptor in client.accounts.pages(results_per_page=25):
        print(descriptor.page_number, len(descriptor.page.accounts))
    ```
    """

    def __init__(self, fetcher: PageFetcher[PageT], *, start_page: int = 1):
        if start_page < 1:
            raise ValueError(f"start_page must be 1 or greater, got {start_page}")
        self._fetcher = fetcher
        self._start_page = start_page
        self._state = SequenceState.NOT_STARTED
        self._current: PageDescriptor[PageT] | None = None
        self._fetch_count = 0
        self._advancing = False

    @property
    def state(self) -> SequenceState:
        return self._state

    @property
    def fetch_count(self) -> int:
        """Number of pages fetched so far."""
        return self._fetch_count

    @property
    def current(self) -> PageDescriptor[PageT]:
        """The page reached by the last successful `advance()`."""
        if self._current is None:
            raise LookupError("No current page; call advance() first.")
        return self._current

    async def advance(self) -> bool:
        """Moves to the next page, fetching it.

        Returns:
            bool: True if a page was fetched, False if the sequence is exhausted.
        """
        if self._advancing:
            raise RuntimeError("LazyPageSequence does not support concurrent advance().")
        if self._state is SequenceState.EXHAUSTED:
            return False

        if self._state is SequenceState.NOT_STARTED:
            page_number = self._start_page
        else:
            next_page = self.current.next_page_number
            if next_page is None:
                logger.debug(
                    f"No more pages for {self._fetcher.endpoint} after page {self.current.page_number}."
                )
                self._state = SequenceState.EXHAUSTED
                self._current = None
                return False
            page_number = next_page

        self._advancing = True
        try:
            descriptor = await self._fetcher.fetch_page(page_number)
        finally:
            self._advancing = False

        self._fetch_count += 1
        self._current = descriptor
        self._state = SequenceState.HAS_CURRENT_PAGE
        return True

    def __aiter__(self) -> "LazyPageSequence[PageT]":
        return self

    async def __anext__(self) -> PageDescriptor[PageT]:
        if await self.advance():
            return self.current
        raise StopAsyncIteration


class LazyElementSequence(Generic[PageT, ItemT]):
    """A forward-only sequence of the items on a sequence of pages.

    Empty pages in the middle of a listing are skipped; iteration only ends
    once the underlying page sequence is exhausted.

    Usage:
    ```python
    async for transaction in client.transactions.iterate(account_id="abc"):
        print(transaction.id, transaction.amount)
    ```
    """

    def __init__(
        self,
        pages: LazyPageSequence[PageT],
        project: Callable[[PageT], Sequence[ItemT]],
    ):
        self._pages = pages
        self._project = project
        self._items: Sequence[ItemT] | None = None
        self._index = -1
        self._exhausted = False

    @property
    def pages(self) -> LazyPageSequence[PageT]:
        """The underlying page sequence."""
        return self._pages

    @property
    def current(self) -> ItemT:
        """The item reached by the last successful `advance()`."""
        if self._items is None or not 0 <= self._index < len(self._items):
            raise LookupError("No current item; call advance() first.")
        return self._items[self._index]

    async def advance(self) -> bool:
        """Moves to the next item, fetching pages as needed.

        Returns:
            bool: True if an item is available as `current`, False when exhausted.
        """
        if self._exhausted:
            return False

        self._index += 1
        while self._items is None or self._index >= len(self._items):
            if not await self._pages.advance():
                self._exhausted = True
                self._items = None
                return False
            self._items = self._project(self._pages.current.page)
            self._index = 0
        return True

    def __aiter__(self) -> "LazyElementSequence[PageT, ItemT]":
        return self

    async def __anext__(self) -> ItemT:
        if await self.advance():
            return self.current
        raise StopAsyncIteration
