"""
Token provider interfaces for the Power BI provider.

This module defines the capability every credential provider implements, so
the transport chain only ever asks for "a bearer token" and never cares how
it was obtained.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .config import AuthMethod


@dataclass
class TokenInfo:
    """Information about an access token."""
    access_token: str
    expires_in: Optional[int] = None
    expires_at: Optional[float] = None

    def __post_init__(self):
        """Calculate expiration time if not provided."""
        if self.expires_in and not self.expires_at:
            self.expires_at = time.time() + self.expires_in

    def expires_within(self, seconds: float) -> bool:
        """
        Check if the token expires in the next ``seconds`` seconds.

        A token with no known expiry is treated as expiring, so it is never
        reused from a cache.
        """
        if not self.expires_at:
            return True
        return time.time() + seconds >= self.expires_at


class TokenProvider(ABC):
    """
    Abstract interface for bearer token providers.

    Implementations own only their own state (credentials, HTTP client,
    parsed key material). ``get_token`` is called once per request attempt.
    """

    @abstractmethod
    async def get_token(self) -> str:
        """
        Obtain a bearer token for the Power BI REST API.

        Returns:
            A non-empty access token

        Raises:
            AuthenticationError: When no token can be obtained
        """
        pass

    @property
    @abstractmethod
    def credential_type(self) -> AuthMethod:
        """Authentication method this provider implements."""
        pass

    async def aclose(self) -> None:
        """Release resources held by the provider."""
        return None
