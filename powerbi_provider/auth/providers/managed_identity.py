"""
Managed identity authentication.

App Service and Functions expose ``IDENTITY_ENDPOINT``/``IDENTITY_HEADER``;
everywhere else the instance metadata service (IMDS) is used.
"""

import os
from typing import Mapping, Optional

import httpx

from powerbi_provider.utils.config import Config

from ..config import AuthMethod
from ..interfaces import TokenInfo
from .base import OAuthTokenProvider, parse_token_response

IMDS_ENDPOINT = "http://169.254.169.254/metadata/identity/oauth2/token"
IMDS_API_VERSION = "2018-02-01"
APP_SERVICE_API_VERSION = "2019-08-01"


class ManagedIdentityProvider(OAuthTokenProvider):
    """Token from the Azure managed identity endpoint of the current host."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Config] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.client_id = client_id
        self._environ = environ if environ is not None else os.environ
        super().__init__(http_client=http_client, settings=settings)

    @property
    def credential_type(self) -> AuthMethod:
        return AuthMethod.MANAGED_IDENTITY

    async def _fetch_token(self) -> TokenInfo:
        params = {"resource": self.settings.resource}
        if self.client_id:
            params["client_id"] = self.client_id

        endpoint = self._environ.get("IDENTITY_ENDPOINT")
        identity_header = self._environ.get("IDENTITY_HEADER")

        if endpoint and identity_header:
            params["api-version"] = APP_SERVICE_API_VERSION
            headers = {"X-IDENTITY-HEADER": identity_header}
            self._logger.debug("Using App Service managed identity endpoint", user_assigned=bool(self.client_id))
        else:
            endpoint = IMDS_ENDPOINT
            params["api-version"] = IMDS_API_VERSION
            headers = {"Metadata": "true"}
            self._logger.debug("Using instance metadata service", user_assigned=bool(self.client_id))

        response = await self._http_client.get(endpoint, params=params, headers=headers)
        return parse_token_response(response, endpoint="managed identity token")
