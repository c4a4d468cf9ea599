"""
Power BI REST API client.

``PowerBIClient`` sends JSON requests through the transport middleware chain
and follows OData pagination. Resource-specific operations live in mixins.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set
from urllib.parse import quote, urlencode

import httpx
import structlog

from powerbi_provider.auth.interfaces import TokenProvider
from powerbi_provider.utils.config import Config, get_config
from powerbi_provider.utils.exceptions import (
    CommunicationError,
    HTTPUnsuccessfulError,
)

logger = structlog.get_logger(__name__)


def escape_path(segment: Any) -> str:
    """Escape a value for use as a single URL path segment."""
    return quote(str(segment), safe="")


def is_not_found(error: BaseException) -> bool:
    """
    Check whether an error is a 404 from the API.

    Deletes treat this as "already absent" and reads as "not found".
    """
    return isinstance(error, HTTPUnsuccessfulError) and error.status_code == 404


@dataclass
class PaginationOptions:
    """OData query options for list endpoints."""
    top: Optional[int] = None
    skip: Optional[int] = None
    filter: Optional[str] = None
    order_by: Optional[str] = None
    select: Optional[str] = None
    expand: Optional[str] = None


def build_pagination_query(options: Optional[PaginationOptions]) -> str:
    """Encode pagination options as an OData query string (without ``?``)."""
    if options is None:
        return ""

    params = []
    if options.top is not None and options.top > 0:
        params.append(("$top", str(options.top)))
    if options.skip is not None and options.skip > 0:
        params.append(("$skip", str(options.skip)))
    if options.filter:
        params.append(("$filter", options.filter))
    if options.order_by:
        params.append(("$orderby", options.order_by))
    if options.select:
        params.append(("$select", options.select))
    if options.expand:
        params.append(("$expand", options.expand))

    return urlencode(params)


def with_query(url: str, options: Optional[PaginationOptions]) -> str:
    query = build_pagination_query(options)
    return f"{url}?{query}" if query else url


class BaseClient:
    """
    HTTP plumbing shared by all resource operations.

    Relative URLs are resolved against ``Config.api_base_url``.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        config: Optional[Config] = None,
        token_provider: Optional[TokenProvider] = None,
        provider_users: Optional[Set["BaseClient"]] = None,
    ):
        """
        Initialize the client.

        Args:
            transport: Outermost transport of the middleware chain
            config: Provider settings (uses global config if None)
            token_provider: Provider used by the chain, closed with the last
                client that uses it
            provider_users: Open clients sharing ``token_provider``
        """
        self.config = config or get_config()
        self.token_provider = token_provider
        self._provider_users = provider_users if provider_users is not None else set()
        self._provider_users.add(self)
        self._http = httpx.AsyncClient(
            base_url=self.config.api_base_url,
            transport=transport,
            timeout=httpx.Timeout(self.config.http_timeout, connect=self.config.tls_handshake_timeout),
            headers={"Accept": "application/json"},
        )
        self._logger = logger.bind(client="powerbi")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client, and the token provider once no other client uses it."""
        await self._http.aclose()
        if self not in self._provider_users:
            return
        self._provider_users.discard(self)
        if self.token_provider is not None and not self._provider_users:
            await self.token_provider.aclose()

    async def do_json(self, method: str, url: str, body: Any = None) -> Any:
        """
        Send a request with an optional JSON body and decode the JSON reply.

        Args:
            method: HTTP method
            url: URL relative to the API base URL, or absolute
            body: JSON-serialisable request body

        Returns:
            The decoded response, or None when the response has no body

        Raises:
            HTTPUnsuccessfulError: For non-2xx responses
            CommunicationError: When the response is not valid JSON
        """
        kwargs: Dict[str, Any] = {}
        if body is not None:
            kwargs["json"] = body

        self._logger.debug("Sending request", method=method, url=url)
        response = await self._http.request(method, url, **kwargs)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise CommunicationError(
                f"failed to decode response from {method} {url}: {e}",
                {"status_code": response.status_code},
            )

    async def get_all_pages(self, url: str) -> Dict[str, List[Any]]:
        """
        Collect every item of a paginated list by following ``@odata.nextLink``.

        Returns:
            ``{"value": [...]}`` with the items of all pages in order
        """
        items: List[Any] = []
        next_url: Optional[str] = url
        pages = 0

        while next_url:
            page = await self.do_json("GET", next_url) or {}
            value = page.get("value") or []
            if not isinstance(value, list):
                raise CommunicationError(f"paginated response from {next_url} has no value list")
            items.extend(value)
            pages += 1
            next_url = page.get("@odata.nextLink")

        self._logger.debug("Fetched all pages", url=url, pages=pages, items=len(items))
        return {"value": items}
