"""
Credential providers for the Power BI provider.

``create_token_provider`` is the only place that turns an ``AuthConfig`` into
a provider; every ``AuthMethod`` maps to exactly one provider type.
"""

from typing import Callable, Dict, Optional

import httpx

from powerbi_provider.utils.config import Config

from ..config import AuthConfig, AuthMethod
from ..interfaces import TokenProvider
from ..selector import validate_auth_config
from .azure_cli import AzureCLIProvider
from .base import POWERBI_SCOPE, OAuthTokenProvider
from .certificate import CertificateCredential, CertificateProvider, load_certificate
from .client_credentials import ClientCredentialsProvider
from .direct import DirectTokenProvider
from .managed_identity import ManagedIdentityProvider
from .username_password import UsernamePasswordProvider

_Factory = Callable[[AuthConfig, Optional[httpx.AsyncClient], Optional[Config]], TokenProvider]

_FACTORIES: Dict[AuthMethod, _Factory] = {
    AuthMethod.ACCESS_TOKEN: lambda c, client, settings: DirectTokenProvider(c.access_token or ""),
    AuthMethod.MANAGED_IDENTITY: lambda c, client, settings: ManagedIdentityProvider(
        client_id=c.managed_identity_id, http_client=client, settings=settings
    ),
    AuthMethod.AZURE_CLI: lambda c, client, settings: AzureCLIProvider(
        tenant_id=c.tenant_id, settings=settings
    ),
    AuthMethod.CERTIFICATE: lambda c, client, settings: CertificateProvider.from_source(
        c.tenant_id,
        c.client_id,
        certificate_path=c.certificate_path,
        certificate_data=c.certificate_data,
        certificate_password=c.certificate_password,
        http_client=client,
        settings=settings,
    ),
    AuthMethod.CLIENT_SECRET: lambda c, client, settings: ClientCredentialsProvider(
        c.tenant_id, c.client_id, c.client_secret, http_client=client, settings=settings
    ),
    AuthMethod.USERNAME_PASSWORD: lambda c, client, settings: UsernamePasswordProvider(
        c.tenant_id,
        c.client_id,
        c.client_secret,
        c.username,
        c.password,
        http_client=client,
        settings=settings,
    ),
}


def create_token_provider(
    config: AuthConfig,
    http_client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Config] = None,
) -> TokenProvider:
    """
    Validate the configuration and create the provider for its active method.

    Args:
        config: Authentication configuration
        http_client: HTTP client for identity endpoints (one is created if None)
        settings: Provider settings (uses global config if None)

    Returns:
        Token provider for the active authentication method
    """
    method = validate_auth_config(config)
    return _FACTORIES[method](config, http_client, settings)


__all__ = [
    "create_token_provider",
    "TokenProvider",
    "OAuthTokenProvider",
    "DirectTokenProvider",
    "ClientCredentialsProvider",
    "CertificateProvider",
    "CertificateCredential",
    "load_certificate",
    "ManagedIdentityProvider",
    "AzureCLIProvider",
    "UsernamePasswordProvider",
    "POWERBI_SCOPE",
]
