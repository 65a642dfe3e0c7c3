"""Async HTTP client for the Google Books volumes API."""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import settings
from .errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_RESULTS_PER_REQUEST = 40


class GoogleBooksClient:
    """
    Client for Google Books with a per-call timeout and bounded retries.

    Transport failures (connection errors, timeouts) are retried with a
    linearly growing delay. Bulk searches fan out over several pages in
    parallel and tolerate individual page failures.
    """

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 25.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        batches: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Google Books client.

        Args:
            api_key: Optional API key (increases rate limits)
            timeout: Request timeout in seconds
            max_retries: Retries after the first attempt on transport failure
            retry_delay: Base delay; attempt n waits retry_delay * n
            batches: Number of pages fetched by search()
            transport: Optional httpx transport (tests inject a mock)
        """
        self.api_key = api_key
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.batches = batches

        client_kwargs: Dict[str, Any] = {
            "timeout": timeout,
            "headers": {"Accept": "application/json", "User-Agent": "bookquest/1.0"},
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self.client = httpx.AsyncClient(**client_kwargs)

    def _params(self, **params) -> Dict[str, Any]:
        if self.api_key:
            params["key"] = self.api_key
        return params

    async def _get_with_retry(self, params: Dict[str, Any]) -> httpx.Response:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                return await self.client.get(self.BASE_URL, params=params)
            except httpx.TransportError as e:
                last_error = e
                logger.warning("Attempt %d failed: %s", attempt + 1, e)
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
        raise last_error

    @staticmethod
    def _items(response: httpx.Response) -> List[Dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            return []
        if not isinstance(body, dict):
            return []
        return body.get("items") or []

    async def fetch_batch(self, query: str, index: int) -> List[Dict[str, Any]]:
        """
        Fetch one page of results; any failure yields an empty page.

        Args:
            query: Free-text search query
            index: Zero-based batch number

        Returns:
            Raw volume items in provider order
        """
        params = self._params(
            q=query,
            startIndex=index * MAX_RESULTS_PER_REQUEST,
            maxResults=MAX_RESULTS_PER_REQUEST,
            printType="books",
            orderBy="relevance",
        )
        try:
            response = await self._get_with_retry(params)
        except httpx.HTTPError as e:
            logger.error("Search error (batch %d): %s", index + 1, e)
            return []

        if response.status_code != 200:
            logger.warning("Search error (batch %d): HTTP %d", index + 1, response.status_code)
            return []
        return self._items(response)

    async def search(self, query: str) -> List[Dict[str, Any]]:
        """Fetch every batch in parallel and merge them in batch order."""
        tasks = [self.fetch_batch(query, i) for i in range(self.batches)]
        results = await asyncio.gather(*tasks)
        return [item for batch in results for item in batch]

    async def lookup_isbn(self, isbn: str) -> List[Dict[str, Any]]:
        """
        Look up volumes by ISBN.

        Raises:
            UpstreamError: Provider unreachable after retries, or non-OK status.
        """
        params = self._params(q=f"isbn:{isbn}", printType="books")
        try:
            response = await self._get_with_retry(params)
        except httpx.HTTPError as e:
            logger.error("ISBN lookup for %s failed: %s", isbn, e)
            raise UpstreamError("Google Books is unreachable") from e

        if response.status_code != 200:
            logger.warning("ISBN lookup for %s: HTTP %d", isbn, response.status_code)
            raise UpstreamError(f"Google Books returned HTTP {response.status_code}")
        return self._items(response)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def get_google_books_client():
    async with GoogleBooksClient(
        api_key=settings.GOOGLE_BOOKS_API_KEY,
        timeout=settings.GOOGLE_BOOKS_TIMEOUT,
        max_retries=settings.GOOGLE_BOOKS_MAX_RETRIES,
        retry_delay=settings.GOOGLE_BOOKS_RETRY_DELAY,
        batches=settings.GOOGLE_BOOKS_BATCHES,
    ) as client:
        yield client
