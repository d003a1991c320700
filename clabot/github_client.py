"""
Minimal async GitHub REST client.

Wraps httpx.AsyncClient with the headers GitHub expects, raises on HTTP
errors and follows Link-header pagination for list endpoints.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


class GitHubClient:
    """Authenticated client for one GitHub token."""

    DEFAULT_TIMEOUT = 30.0
    PAGE_SIZE = 100

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            token: Token sent as a bearer credential
            base_url: REST API root (GitHub Enterprise uses a different one)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        )

    async def request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Send a request and return the decoded JSON body.

        Returns None for empty responses (204 No Content).

        Raises:
            httpx.HTTPStatusError: On any 4xx/5xx response
            httpx.HTTPError: On transport failures
        """
        response = await self._client.request(method, endpoint, **kwargs)
        logger.debug(f"{method} {endpoint} -> {response.status_code}")
        response.raise_for_status()
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def request_optional(self, method: str, endpoint: str, **kwargs) -> Any | None:
        """Like request(), but a 404 yields None instead of an error."""
        try:
            return await self.request(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise

    async def paginate(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        item_key: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Iterate over every item of a paginated list endpoint.

        Args:
            endpoint: List endpoint path
            params: Extra query parameters for the first page
            item_key: Key holding the items when the page is an object
                (e.g. "check_runs"); pages are plain lists otherwise
        """
        query = {"per_page": self.PAGE_SIZE, **(params or {})}
        url: str | None = endpoint
        while url:
            response = await self._client.get(url, params=query)
            response.raise_for_status()
            page = response.json()
            items = page.get(item_key, []) if item_key else page
            for item in items:
                yield item

            next_link = response.links.get("next")
            url = next_link["url"] if next_link else None
            # The next URL already carries the query string.
            query = None

    async def get_all(self, endpoint: str, **kwargs) -> list[dict[str, Any]]:
        """Collect every page of a list endpoint."""
        return [item async for item in self.paginate(endpoint, **kwargs)]

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
