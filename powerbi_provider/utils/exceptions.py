"""
Exception classes for the Power BI provider.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    import httpx


class PowerBIProviderError(Exception):
    """Base exception for all provider errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(PowerBIProviderError):
    """Raised when there's a configuration problem."""
    pass


class AuthenticationError(PowerBIProviderError):
    """Raised when a bearer token cannot be acquired."""
    pass


class CommunicationError(PowerBIProviderError):
    """Base class for errors talking to the Power BI REST API."""
    pass


class HTTPUnsuccessfulError(CommunicationError):
    """
    Raised when the API answers with a non-2xx status.

    The response is kept so callers can inspect headers (e.g. Retry-After)
    and decide how to treat specific statuses such as 404.
    """

    def __init__(
        self,
        status_code: int,
        body: str = "",
        response: Optional["httpx.Response"] = None,
    ):
        message = f"status code {status_code}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code
        self.body = body
        self.response = response


class MaxRetriesExceededError(CommunicationError):
    """Raised by the call-level retry helper once every attempt has failed."""

    def __init__(self, last_error: BaseException):
        super().__init__(f"max retries exceeded: {last_error}")
        self.last_error = last_error
