# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module contains the paginated query executor for IoT Hub twin queries.

A query is turned into a lazy, forward-only stream of twins. Pages are fetched one at a time,
and only when the consumer advances past the end of the page currently buffered. Failures are
never retried here; they surface to the consumer at the page boundary where they occurred.
"""
import collections
import logging
from typing import AsyncGenerator, Deque, Optional
from .custom_typing import FetchPage
from .models import QueryPage, QueryRequest, TwinDocument

logger = logging.getLogger(__name__)


class QueryStream:
    """An asynchronous iterator over the twins matching a query.

    Iterate with `async for` to receive individual twins, or use `.by_page()` to receive whole
    pages. A stream can only be iterated once, in one of those two ways. To run the query again
    from the beginning, create a new stream.

    Instantiate via `QueryExecutor.execute()` rather than directly.
    """

    def __init__(
        self, fetch_page: FetchPage, query: str, page_size: Optional[int] = None
    ) -> None:
        """
        :param fetch_page: Coroutine function taking a QueryRequest and returning a QueryPage
        :param str query: The query text
        :param int page_size: Maximum number of twins per page (optional)
        """
        self._fetch_page = fetch_page
        self._query = query
        self._page_size = page_size

        self._buffer: Deque[TwinDocument] = collections.deque()
        self._continuation_token: Optional[str] = None
        self._iterating_items = False
        self._iterating_pages = False
        self._finished = False

    def __aiter__(self) -> "QueryStream":
        return self

    async def __anext__(self) -> TwinDocument:
        if self._iterating_pages:
            raise RuntimeError("QueryStream is already being iterated by page")
        self._iterating_items = True

        # Pages with no items may still carry a continuation token
        while not self._buffer:
            if self._finished:
                raise StopAsyncIteration
            page = await self._fetch_next_page()
            self._buffer.extend(page.items)
        return self._buffer.popleft()

    @property
    def query(self) -> str:
        """The query text the stream was created with"""
        return self._query

    @property
    def continuation_token(self) -> Optional[str]:
        """The token that will be used to fetch the next page, if any"""
        return self._continuation_token

    @property
    def finished(self) -> bool:
        """Indicates that no further pages will be fetched"""
        return self._finished

    def by_page(self, continuation_token: Optional[str] = None) -> AsyncGenerator[QueryPage, None]:
        """Returns an async generator of the pages of query results

        :param str continuation_token: A continuation token returned with a page of a prior
            iteration of the same query. If provided, iteration resumes at the page it identifies.

        :raises: RuntimeError if the stream has already been iterated
        """
        if self._iterating_items or self._iterating_pages:
            raise RuntimeError("QueryStream has already been iterated")
        self._iterating_pages = True
        self._continuation_token = continuation_token
        return self._page_generator()

    async def _page_generator(self) -> AsyncGenerator[QueryPage, None]:
        while not self._finished:
            yield await self._fetch_next_page()

    async def _fetch_next_page(self) -> QueryPage:
        """Fetch the page identified by the current continuation token, and advance the
        continuation state past it.

        If the fetch raises, the stream is finished and the error propagates. If the fetch is
        cancelled, the continuation state is left untouched.
        """
        request = QueryRequest(
            query=self._query,
            continuation_token=self._continuation_token,
            page_size=self._page_size,
        )
        logger.debug(
            "Fetching query page ({})".format(
                "continuation" if request.continuation_token else "first page"
            )
        )
        try:
            page = await self._fetch_page(request)
        except Exception:
            logger.debug("Query page fetch failed. Ending query stream")
            self._finished = True
            raise

        first_page = request.continuation_token is None
        self._continuation_token = page.continuation_token or None
        # An empty first page means there are no results, regardless of any token
        if not self._continuation_token or (first_page and not page.items):
            self._finished = True
            self._continuation_token = None
        logger.debug(
            "Received query page with {count} item(s). {more}".format(
                count=len(page.items),
                more="More pages available" if not self._finished else "Final page",
            )
        )
        return page


class QueryExecutor:
    """Executes twin queries against a page-fetch transport"""

    def __init__(self, fetch_page: FetchPage, page_size: Optional[int] = None) -> None:
        """
        :param fetch_page: Coroutine function taking a QueryRequest and returning a QueryPage.
            It is invoked once per page, and is expected to raise QuerySyntaxError,
            AuthorizationError or TransportError on failure.
        :param int page_size: Default maximum number of twins per page (optional)

        :raises: ValueError if `page_size` is not a positive number
        """
        self._fetch_page = fetch_page
        self.page_size = page_size

    @property
    def page_size(self) -> Optional[int]:
        return self._page_size

    @page_size.setter
    def page_size(self, value: Optional[int]) -> None:
        self._page_size = _sanitize_page_size(value)

    def execute(self, query: str, page_size: Optional[int] = None) -> QueryStream:
        """Execute a query, returning a lazy stream of the matching twins.

        No request is made until the stream is iterated.

        :param str query: The query text. Passed to IoT Hub unmodified, e.g.
            "SELECT * FROM devices.modules WHERE tags.env = 'prod'"
        :param int page_size: Maximum number of twins per page. Overrides the executor default.

        :returns: An async iterator of TwinDocuments
        :rtype: :class:`QueryStream`

        :raises: TypeError if `query` is not a string
        :raises: ValueError if `query` is empty
        :raises: ValueError if `page_size` is not a positive number
        """
        if not isinstance(query, str):
            raise TypeError("Query must be of type str")
        if not query.strip():
            raise ValueError("Query cannot be empty")
        if page_size is None:
            page_size = self._page_size
        else:
            page_size = _sanitize_page_size(page_size)
        return QueryStream(self._fetch_page, query, page_size)


def _sanitize_page_size(page_size: Optional[int]) -> Optional[int]:
    if page_size is None:
        return None
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise ValueError("Page size must be a positive number")
    if page_size <= 0:
        raise ValueError("Page size must be a positive number")
    return page_size
