"""
Logging utilities for the Power BI provider.

Events are rendered by structlog and written through the standard library
logger on stderr. Credentials are masked before rendering.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog

from powerbi_provider.utils.config import Config, get_config

# Event keys whose values are credentials
SENSITIVE_KEYS = frozenset({
    "access_token",
    "authorization",
    "client_secret",
    "password",
    "certificate_password",
    "identity_header",
})

# Libraries that log every request at INFO, URLs included
NOISY_LOGGERS = ("httpx", "httpcore")


def mask_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """Mask a credential, showing only the first characters."""
    if not value:
        return "<not_set>"
    if len(value) <= visible_chars:
        return "***"
    return f"{value[:visible_chars]}...({len(value)} chars)"


def mask_sensitive_values(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor masking credential values by key."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = mask_secret(str(event_dict[key]))
    return event_dict


def setup_logging(config: Optional[Config] = None) -> None:
    """
    Setup structured logging.

    Args:
        config: Configuration object (uses global config if None)
    """
    config = config or get_config()
    level = getattr(logging, config.log_level.upper())

    # stdout is reserved for command output
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        mask_sensitive_values,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if config.log_format.lower() == "json":
        processors.extend([
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ])
    else:
        processors.extend([
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer()
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
