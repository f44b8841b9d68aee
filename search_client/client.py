"""PostgREST search client for the books table.

Translates a SearchRequest into PostgREST filter parameters and reads the
exact match count from the ``Content-Range`` response header.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from search_cache.keys import SearchRequest, SearchResponse
from search_config import SEARCH_API_URL

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("created_at", "title", "author", "price")
DEFAULT_SORT_COLUMN = "created_at"
DEFAULT_SORT_ORDER = "desc"
DEFAULT_PAGE_SIZE = 10


class RemoteSearchClient:
    """Async search function backed by a PostgREST (Supabase) endpoint.

    Each call issues one ``GET /rest/v1/{table}`` with ``Prefer: count=exact``
    so the page of results and the total number of matches arrive together.

    Free-text queries match title, author or description case-insensitively.
    Tag filters match books sharing at least one tag.

    Example:
        >>> client = RemoteSearchClient("http://localhost:54321", api_key="anon")
        >>> response = await client.search(SearchRequest(category="Fiction", limit=20))
        >>> len(response.results), response.total
        (20, 143)
    """

    def __init__(
        self,
        base_url: str = SEARCH_API_URL,
        api_key: Optional[str] = None,
        table: str = "books",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the search client.

        Args:
            base_url: Base URL of the PostgREST server
            api_key: Optional API key, sent as ``apikey`` and bearer token
            table: Table to search
            timeout: HTTP request timeout in seconds
            client: Optional shared AsyncClient. When omitted a client is
                opened for each search.

        Raises:
            ValueError: If base_url or table is empty
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")
        if not table or not table.strip():
            raise ValueError("table cannot be empty")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout = timeout
        self._client = client

        self.api_url = f"{self.base_url}/rest/v1/{self.table}"

        logger.info("Initialized RemoteSearchClient for %s", self.api_url)

    async def __call__(self, request: SearchRequest) -> SearchResponse:
        return await self.search(request)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Prefer": "count=exact",
        }
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def build_params(self, request: SearchRequest) -> List[Tuple[str, str]]:
        """Translate a search request into PostgREST query parameters.

        Args:
            request: Search request to translate

        Returns:
            List of (name, value) pairs; names may repeat
        """
        params: List[Tuple[str, str]] = [("select", "*")]

        if request.category:
            params.append(("category", f"eq.{request.category}"))

        if request.is_free is not None:
            params.append(("is_free", "eq.true" if request.is_free else "eq.false"))

        if request.price_range is not None:
            min_price, max_price = request.price_range
            params.append(("price", f"gte.{min_price}"))
            params.append(("price", f"lte.{max_price}"))

        if request.tags:
            params.append(("tags", "ov.{" + ",".join(request.tags) + "}"))

        if request.query:
            pattern = f"*{request.query}*"
            params.append((
                "or",
                f"(title.ilike.{pattern},author.ilike.{pattern},description.ilike.{pattern})"
            ))

        sort_by = request.sort_by if request.sort_by in SORTABLE_COLUMNS else DEFAULT_SORT_COLUMN
        sort_order = request.sort_order if request.sort_order in ("asc", "desc") else DEFAULT_SORT_ORDER
        params.append(("order", f"{sort_by}.{sort_order}"))

        if request.limit:
            params.append(("limit", str(request.limit)))
        elif request.offset:
            params.append(("limit", str(DEFAULT_PAGE_SIZE)))

        if request.offset:
            params.append(("offset", str(request.offset)))

        return params

    @staticmethod
    def parse_total(content_range: Optional[str], fallback: int) -> int:
        """Read the total match count from a ``Content-Range`` header.

        Args:
            content_range: Header value such as ``0-19/57`` or ``*/0``
            fallback: Value returned when the header is missing or the
                total is unknown (``*``)

        Returns:
            Total number of matches
        """
        if not content_range or "/" not in content_range:
            return fallback

        total = content_range.rsplit("/", 1)[1].strip()
        if not total.isdigit():
            return fallback
        return int(total)

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Run a search against the backend.

        Args:
            request: Search request

        Returns:
            SearchResponse with the page of book records and total count

        Raises:
            httpx.HTTPError: If the request fails or the backend answers
                with an error status
        """
        if self._client is not None:
            return await self._search_with_client(self._client, request)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._search_with_client(client, request)

    async def _search_with_client(
        self,
        client: httpx.AsyncClient,
        request: SearchRequest
    ) -> SearchResponse:
        try:
            response = await client.get(
                self.api_url,
                params=self.build_params(request),
                headers=self._headers(),
            )
            response.raise_for_status()
            data: Any = response.json()
        except httpx.HTTPError as e:
            logger.error("Search request failed for %r: %s", request, e)
            raise

        results = data if isinstance(data, list) else []
        total = self.parse_total(response.headers.get("content-range"), len(results))
        return SearchResponse(results=results, total=total)
