"""HTTP client for the remote book search backend.

The client is an async callable that takes a SearchRequest and returns a
SearchResponse, so it can be handed directly to the cache warmer or the
book search service as their search function.

Example:
    >>> from search_client import RemoteSearchClient
    >>> client = RemoteSearchClient(
    ...     base_url="https://project.supabase.co",
    ...     api_key="anon-key"
    ... )
    >>> response = await client(SearchRequest(query="dune", limit=20))
    >>> print(response.total)
"""

from search_client.client import RemoteSearchClient, SORTABLE_COLUMNS

__all__ = ["RemoteSearchClient", "SORTABLE_COLUMNS"]
