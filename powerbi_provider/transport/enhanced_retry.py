"""
Exponential backoff retry with jitter.

``EnhancedRetryTransport`` sits below the error classifier and retries raw
responses whose status is retryable (by default 429, 502, 503 and 504). The
wait honours ``Retry-After`` on 429 responses and otherwise grows
exponentially, with symmetric jitter so that concurrent clients spread out.

``retry_async`` applies the same policy at call level, to an async callable
that raises ``HTTPUnsuccessfulError``.
"""

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, FrozenSet, Optional, TypeVar

import httpx
import structlog

from powerbi_provider.utils.exceptions import HTTPUnsuccessfulError, MaxRetriesExceededError

from .requests import buffer_request, clone_request

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_RETRYABLE_STATUS: FrozenSet[int] = frozenset({429, 502, 503, 504})


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 5
    initial_delay: float = 1.0
    max_delay: float = 60.0
    backoff_factor: float = 2.0

    # Share of the delay added or removed at random (0-1)
    jitter_factor: float = 0.3

    retryable_status: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must not be negative")
        if self.max_delay < 0:
            raise ValueError("max_delay must not be negative")
        if self.backoff_factor <= 0:
            raise ValueError("backoff_factor must be positive")
        if not 0 <= self.jitter_factor <= 1:
            raise ValueError("jitter_factor must be between 0 and 1")
        if not isinstance(self.retryable_status, frozenset):
            object.__setattr__(self, "retryable_status", frozenset(self.retryable_status))


def backoff_delay(config: RetryConfig, attempt: int) -> float:
    """
    Exponential delay for a 0-indexed attempt, clamped to ``max_delay``.

    No jitter is applied.
    """
    try:
        delay = config.initial_delay * (config.backoff_factor ** attempt)
    except OverflowError:
        return config.max_delay
    return min(delay, config.max_delay)


def apply_jitter(
    config: RetryConfig,
    delay: float,
    rand: Callable[[], float] = random.random,
) -> float:
    """Add uniform jitter in ``[-jitter_factor*delay, +jitter_factor*delay]``."""
    if config.jitter_factor == 0 or delay <= 0:
        return max(delay, 0.0)
    jitter = delay * config.jitter_factor * (2 * rand() - 1)
    return max(delay + jitter, 0.0)


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Parse a ``Retry-After`` header into seconds.

    Accepts integer or decimal seconds, or an HTTP-date. Returns None when the
    value is missing, unparsable, or not in the future.
    """
    if not value:
        return None
    value = value.strip()

    try:
        seconds = float(value)
    except ValueError:
        seconds = None

    if seconds is None:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when is None:
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        seconds = (when - now).total_seconds()

    if seconds != seconds or seconds <= 0:
        return None
    return seconds


def calculate_delay(
    config: RetryConfig,
    attempt: int,
    response: Optional[httpx.Response] = None,
    rand: Callable[[], float] = random.random,
) -> float:
    """
    Compute the wait before the next attempt.

    A 429 response with a usable ``Retry-After`` wins over exponential
    backoff. Jitter is applied to either, and the result is clamped to
    ``[0, max_delay]``.
    """
    delay = None
    if response is not None and response.status_code == 429:
        delay = parse_retry_after(response.headers.get("Retry-After"))

    if delay is None:
        delay = backoff_delay(config, attempt)

    return min(apply_jitter(config, delay, rand), config.max_delay)


class EnhancedRetryTransport(httpx.AsyncBaseTransport):
    """
    Retries responses with a retryable status code.

    Transport errors from the inner layer propagate immediately. When every
    attempt is used up the last response is returned unchanged, so the outer
    layers classify it as usual.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        config: Optional[RetryConfig] = None,
        sleep: Sleep = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ):
        self._transport = transport
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._rand = rand
        self._logger = logger.bind(transport="enhanced_retry")

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = await buffer_request(request)

        attempt = 0
        while True:
            response = await self._transport.handle_async_request(clone_request(request, body))

            if response.status_code not in self.config.retryable_status:
                return response

            if attempt >= self.config.max_retries:
                self._logger.warning(
                    "Retries exhausted",
                    method=request.method,
                    url=str(request.url),
                    status_code=response.status_code,
                    attempts=attempt + 1,
                )
                return response

            delay = calculate_delay(self.config, attempt, response, self._rand)
            self._logger.warning(
                "Retryable response, will retry",
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
                attempt=attempt + 1,
                max_retries=self.config.max_retries,
                delay_seconds=round(delay, 2),
            )
            await response.aclose()

            # Cancellation raises here and ends the loop
            await self._sleep(delay)
            attempt += 1

    async def aclose(self) -> None:
        await self._transport.aclose()


def is_retryable_error(error: BaseException) -> bool:
    """Rate limiting and server errors are worth retrying at call level."""
    if not isinstance(error, HTTPUnsuccessfulError):
        return False
    return error.status_code == 429 or error.status_code >= 500


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """
    Call ``fn`` until it succeeds or the retries are used up.

    Args:
        fn: Async callable performing one attempt
        config: Retry policy (defaults to ``RetryConfig()``)
        sleep: Wait function, replaced in tests

    Returns:
        The result of the first successful call

    Raises:
        MaxRetriesExceededError: When every attempt failed with a retryable error
        Exception: Any non-retryable error, unchanged
    """
    config = config or RetryConfig()
    last_error: Optional[HTTPUnsuccessfulError] = None

    for attempt in range(config.max_retries + 1):
        try:
            return await fn()
        except HTTPUnsuccessfulError as e:
            if not is_retryable_error(e):
                raise
            last_error = e

        if attempt < config.max_retries:
            delay = backoff_delay(config, attempt)
            logger.warning(
                "Retryable error, will retry",
                status_code=last_error.status_code,
                attempt=attempt + 1,
                max_retries=config.max_retries,
                delay_seconds=round(delay, 2),
            )
            await sleep(delay)

    raise MaxRetriesExceededError(last_error) from last_error
