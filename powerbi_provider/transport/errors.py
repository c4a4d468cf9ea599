"""
Classification of unsuccessful responses.
"""

import httpx
import structlog

from powerbi_provider.utils.exceptions import HTTPUnsuccessfulError

logger = structlog.get_logger(__name__)


class ErrorOnUnsuccessfulTransport(httpx.AsyncBaseTransport):
    """Turns every non-2xx response into an ``HTTPUnsuccessfulError``."""

    def __init__(self, transport: httpx.AsyncBaseTransport):
        self._transport = transport
        self._logger = logger.bind(transport="error_on_unsuccessful")

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        response = await self._transport.handle_async_request(request)
        if 200 <= response.status_code < 300:
            return response

        # The body is read here since the response never reaches the caller
        try:
            await response.aread()
        finally:
            await response.aclose()

        self._logger.debug(
            "Unsuccessful response",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
        )
        raise HTTPUnsuccessfulError(response.status_code, response.text, response)

    async def aclose(self) -> None:
        await self._transport.aclose()
