"""
Retry layers that sit outside the error classifier.

Both layers react to ``HTTPUnsuccessfulError`` raised further down the chain
and re-raise it once their retries are used up.
"""

import asyncio
from typing import Optional

import httpx
import structlog

from powerbi_provider.utils.exceptions import HTTPUnsuccessfulError

from .enhanced_retry import Sleep, parse_retry_after
from .requests import buffer_request, clone_request

logger = structlog.get_logger(__name__)


class RetryTooManyRequestsTransport(httpx.AsyncBaseTransport):
    """
    Retries requests rejected with 429 Too Many Requests.

    Waits for the ``Retry-After`` interval, or ``default_delay`` when the
    header is missing or unusable.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        max_retries: int = 10,
        default_delay: float = 5.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self._transport = transport
        self.max_retries = max_retries
        self.default_delay = default_delay
        self._sleep = sleep
        self._logger = logger.bind(transport="retry_too_many_requests")

    def _delay_for(self, error: HTTPUnsuccessfulError) -> float:
        retry_after: Optional[float] = None
        if error.response is not None:
            retry_after = parse_retry_after(error.response.headers.get("Retry-After"))
        return retry_after if retry_after is not None else self.default_delay

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = await buffer_request(request)

        attempt = 0
        while True:
            try:
                return await self._transport.handle_async_request(clone_request(request, body))
            except HTTPUnsuccessfulError as e:
                if e.status_code != 429 or attempt >= self.max_retries:
                    raise
                delay = self._delay_for(e)

            attempt += 1
            self._logger.warning(
                "Rate limited, will retry",
                method=request.method,
                url=str(request.url),
                attempt=attempt,
                max_retries=self.max_retries,
                delay_seconds=round(delay, 2),
            )
            await self._sleep(delay)

    async def aclose(self) -> None:
        await self._transport.aclose()


class RetryIntermittentErrorTransport(httpx.AsyncBaseTransport):
    """
    Retries requests that failed with 400 or a 5xx status.

    The Power BI API occasionally answers valid requests with these, so they
    are retried with exponential backoff starting at ``initial_delay``.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self._transport = transport
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep
        self._logger = logger.bind(transport="retry_intermittent_error")

    @staticmethod
    def is_intermittent(error: HTTPUnsuccessfulError) -> bool:
        return error.status_code == 400 or error.status_code >= 500

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = await buffer_request(request)

        attempt = 0
        while True:
            try:
                return await self._transport.handle_async_request(clone_request(request, body))
            except HTTPUnsuccessfulError as e:
                if not self.is_intermittent(e) or attempt >= self.max_retries:
                    raise
                status_code = e.status_code

            delay = self.initial_delay * (2 ** attempt)
            attempt += 1
            self._logger.warning(
                "Intermittent error, will retry",
                method=request.method,
                url=str(request.url),
                status_code=status_code,
                attempt=attempt,
                max_retries=self.max_retries,
                delay_seconds=round(delay, 2),
            )
            await self._sleep(delay)

    async def aclose(self) -> None:
        await self._transport.aclose()
