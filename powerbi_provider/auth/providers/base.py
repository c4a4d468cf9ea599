"""
Shared plumbing for providers that talk to an OAuth2 token endpoint.
"""

import asyncio
from abc import abstractmethod
from typing import Any, Dict, Optional

import httpx
import structlog

from powerbi_provider.utils.config import Config, get_config

from ..exceptions import TokenParseError, TokenRequestFailedError
from ..interfaces import TokenInfo, TokenProvider

logger = structlog.get_logger(__name__)

POWERBI_SCOPE = "https://analysis.windows.net/powerbi/api/.default"

# Cached tokens are refreshed this many seconds before they expire
TOKEN_REFRESH_MARGIN = 300


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def parse_token_response(response: httpx.Response, endpoint: str = "token") -> TokenInfo:
    """
    Turn an identity endpoint response into a TokenInfo.

    The expiry comes from ``expires_in`` (seconds from now) or, for endpoints
    that only send it, ``expires_on`` (epoch seconds).

    Raises:
        TokenRequestFailedError: If the endpoint did not answer 200
        TokenParseError: If the body is not JSON or has no access token
    """
    if response.status_code != 200:
        raise TokenRequestFailedError(response.status_code, response.text, endpoint)

    try:
        payload = response.json()
    except ValueError as e:
        raise TokenParseError(f"failed to parse {endpoint} response: {e}")

    if not isinstance(payload, dict) or not payload.get("access_token"):
        raise TokenParseError(f"{endpoint} response did not contain an access token")

    expires_on = _as_int(payload.get("expires_on"))
    return TokenInfo(
        access_token=payload["access_token"],
        expires_in=_as_int(payload.get("expires_in")),
        expires_at=float(expires_on) if expires_on is not None else None,
    )


class OAuthTokenProvider(TokenProvider):
    """
    Base class for providers that fetch tokens over HTTP.

    Subclasses implement ``_fetch_token``; this class adds the cached token,
    a lock so concurrent callers trigger one refresh, and ownership of the
    HTTP client.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Config] = None,
    ):
        self.settings = settings or get_config()
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.http_timeout, connect=self.settings.tls_handshake_timeout)
        )
        self._token: Optional[TokenInfo] = None
        self._lock: Optional[asyncio.Lock] = None
        self._logger = logger.bind(provider=self.credential_type.value)

    async def get_token(self) -> str:
        # Created on first use so it belongs to the running loop
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if self._token is not None and not self._token.expires_within(TOKEN_REFRESH_MARGIN):
                self._logger.debug("Using cached token")
                return self._token.access_token

            token = await self._fetch_token()
            self._token = token
            self._logger.info("Acquired access token", expires_in=token.expires_in)
            return token.access_token

    @abstractmethod
    async def _fetch_token(self) -> TokenInfo:
        """Request a fresh token from the identity endpoint."""
        pass

    async def _post_form(self, url: str, data: Dict[str, Any]) -> TokenInfo:
        response = await self._http_client.post(url, data=data)
        return parse_token_response(response)

    def token_endpoint(self, tenant_id: str) -> str:
        authority = self.settings.authority_url.rstrip("/")
        return f"{authority}/{tenant_id}/oauth2/v2.0/token"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()
