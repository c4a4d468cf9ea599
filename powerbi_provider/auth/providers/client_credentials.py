"""
Service principal authentication with a client secret.
"""

from typing import Optional

import httpx

from powerbi_provider.utils.config import Config

from ..config import AuthMethod
from ..interfaces import TokenInfo
from .base import POWERBI_SCOPE, OAuthTokenProvider


class ClientCredentialsProvider(OAuthTokenProvider):
    """OAuth2 client credentials grant against Azure Entra ID."""

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Config] = None,
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self._client_secret = client_secret
        super().__init__(http_client=http_client, settings=settings)

    @property
    def credential_type(self) -> AuthMethod:
        return AuthMethod.CLIENT_SECRET

    async def _fetch_token(self) -> TokenInfo:
        self._logger.debug("Requesting token with client credentials", client_id=self.client_id)
        return await self._post_form(
            self.token_endpoint(self.tenant_id),
            {
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self._client_secret,
                "scope": POWERBI_SCOPE,
            },
        )
