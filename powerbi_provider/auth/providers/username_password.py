"""
Resource-owner password authentication.

Kept for existing configurations. Microsoft discourages this flow and it does
not work for accounts with multi-factor authentication.
"""

from typing import Optional

import httpx

from powerbi_provider.utils.config import Config

from ..config import AuthMethod
from ..interfaces import TokenInfo
from .base import POWERBI_SCOPE, OAuthTokenProvider


class UsernamePasswordProvider(OAuthTokenProvider):
    """OAuth2 password grant on behalf of a user."""

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Config] = None,
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.username = username
        self._client_secret = client_secret
        self._password = password
        super().__init__(http_client=http_client, settings=settings)

    @property
    def credential_type(self) -> AuthMethod:
        return AuthMethod.USERNAME_PASSWORD

    async def _fetch_token(self) -> TokenInfo:
        self._logger.warning("Using deprecated username/password authentication", username=self.username)
        return await self._post_form(
            self.token_endpoint(self.tenant_id),
            {
                "grant_type": "password",
                "client_id": self.client_id,
                "client_secret": self._client_secret,
                "username": self.username,
                "password": self._password,
                "scope": POWERBI_SCOPE,
            },
        )
