"""
Composition of the transport middleware chain.

Each layer is a factory that wraps an inner ``httpx.AsyncBaseTransport``.
``compose`` applies an outermost-first list of layers to a base transport,
so the list reads in the order a request travels.
"""

import asyncio
import ssl
from typing import Callable, List, Optional, Sequence

import httpx
import structlog

from powerbi_provider.auth.interfaces import TokenProvider
from powerbi_provider.utils.config import Config, get_config

from .bearer import BearerTokenTransport
from .enhanced_retry import EnhancedRetryTransport, RetryConfig, Sleep
from .errors import ErrorOnUnsuccessfulTransport
from .retry import RetryIntermittentErrorTransport, RetryTooManyRequestsTransport

logger = structlog.get_logger(__name__)

Layer = Callable[[httpx.AsyncBaseTransport], httpx.AsyncBaseTransport]


def compose(base: httpx.AsyncBaseTransport, layers: Sequence[Layer]) -> httpx.AsyncBaseTransport:
    """
    Wrap ``base`` in ``layers``.

    Args:
        base: Transport that performs the actual HTTP exchange
        layers: Layer factories, outermost first

    Returns:
        The outermost transport
    """
    transport = base
    for layer in reversed(layers):
        transport = layer(transport)
    return transport


def retry_too_many_requests(max_retries: int = 10, default_delay: float = 5.0, sleep: Sleep = asyncio.sleep) -> Layer:
    return lambda inner: RetryTooManyRequestsTransport(
        inner, max_retries=max_retries, default_delay=default_delay, sleep=sleep
    )


def retry_intermittent_errors(max_retries: int = 3, initial_delay: float = 1.0, sleep: Sleep = asyncio.sleep) -> Layer:
    return lambda inner: RetryIntermittentErrorTransport(
        inner, max_retries=max_retries, initial_delay=initial_delay, sleep=sleep
    )


def error_on_unsuccessful() -> Layer:
    return ErrorOnUnsuccessfulTransport


def enhanced_retry(config: Optional[RetryConfig] = None, sleep: Sleep = asyncio.sleep) -> Layer:
    return lambda inner: EnhancedRetryTransport(inner, config=config, sleep=sleep)


def bearer_token(token_provider: TokenProvider) -> Layer:
    return lambda inner: BearerTokenTransport(inner, token_provider)


def create_ssl_context() -> ssl.SSLContext:
    """Default verifying SSL context that refuses anything below TLS 1.2."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


def create_base_transport(config: Optional[Config] = None) -> httpx.AsyncHTTPTransport:
    """Pooled HTTP transport used at the bottom of the chain."""
    config = config or get_config()
    return httpx.AsyncHTTPTransport(
        verify=create_ssl_context(),
        limits=httpx.Limits(
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_keepalive_connections,
        ),
    )


def default_layers(
    token_provider: TokenProvider,
    config: Optional[Config] = None,
    retry_config: Optional[RetryConfig] = None,
    sleep: Sleep = asyncio.sleep,
) -> List[Layer]:
    """
    The standard chain, outermost first.

    The enhanced retry layer is placed below the error classifier so it sees
    raw responses, and above the bearer layer so every retry gets a token.
    """
    config = config or get_config()

    layers: List[Layer] = [
        retry_too_many_requests(config.rate_limit_max_retries, config.rate_limit_default_delay, sleep),
        retry_intermittent_errors(config.intermittent_max_retries, config.intermittent_retry_delay, sleep),
        error_on_unsuccessful(),
    ]
    if retry_config is not None:
        layers.append(enhanced_retry(retry_config, sleep))
    layers.append(bearer_token(token_provider))
    return layers


def build_transport(
    token_provider: TokenProvider,
    config: Optional[Config] = None,
    retry_config: Optional[RetryConfig] = None,
    base: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Sleep = asyncio.sleep,
) -> httpx.AsyncBaseTransport:
    """
    Build the full middleware chain.

    Args:
        token_provider: Source of bearer tokens
        config: Provider settings (uses global config if None)
        retry_config: Enables the enhanced retry layer when given
        base: Innermost transport (a pooled ``AsyncHTTPTransport`` if None)
        sleep: Wait function used by every retry layer

    Returns:
        The outermost transport, ready for ``httpx.AsyncClient(transport=...)``
    """
    config = config or get_config()
    base = base or create_base_transport(config)

    logger.debug(
        "Building transport chain",
        credential_type=token_provider.credential_type.value,
        enhanced_retry=retry_config is not None,
    )
    return compose(base, default_layers(token_provider, config, retry_config, sleep))
