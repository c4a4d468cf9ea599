"""
HTTP transport middleware for the Power BI REST API.
"""

from .bearer import BearerTokenTransport
from .chain import (
    Layer,
    bearer_token,
    build_transport,
    compose,
    create_base_transport,
    create_ssl_context,
    default_layers,
    enhanced_retry,
    error_on_unsuccessful,
    retry_intermittent_errors,
    retry_too_many_requests,
)
from .enhanced_retry import (
    EnhancedRetryTransport,
    RetryConfig,
    apply_jitter,
    backoff_delay,
    calculate_delay,
    parse_retry_after,
    retry_async,
)
from .errors import ErrorOnUnsuccessfulTransport
from .requests import clone_request
from .retry import RetryIntermittentErrorTransport, RetryTooManyRequestsTransport

__all__ = [
    # Chain
    "Layer",
    "compose",
    "build_transport",
    "default_layers",
    "create_base_transport",
    "create_ssl_context",
    "retry_too_many_requests",
    "retry_intermittent_errors",
    "error_on_unsuccessful",
    "enhanced_retry",
    "bearer_token",

    # Layers
    "RetryTooManyRequestsTransport",
    "RetryIntermittentErrorTransport",
    "ErrorOnUnsuccessfulTransport",
    "EnhancedRetryTransport",
    "BearerTokenTransport",

    # Retry policy
    "RetryConfig",
    "backoff_delay",
    "apply_jitter",
    "parse_retry_after",
    "calculate_delay",
    "retry_async",
    "clone_request",
]
