"""
Bearer token injection.
"""

import httpx
import structlog

from powerbi_provider.auth.interfaces import TokenProvider

logger = structlog.get_logger(__name__)


class BearerTokenTransport(httpx.AsyncBaseTransport):
    """
    Sets ``Authorization: Bearer <token>`` on every request.

    The token provider is asked once per attempt, so a retried request always
    carries a current token. Token errors propagate and abort the attempt.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport, token_provider: TokenProvider):
        self._transport = transport
        self._token_provider = token_provider
        self._logger = logger.bind(transport="bearer_token")

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        token = await self._token_provider.get_token()
        request.headers["Authorization"] = f"Bearer {token}"
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self._transport.aclose()
