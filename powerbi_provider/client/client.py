"""
The Power BI REST API client.
"""

from typing import Optional

import httpx
import structlog

from powerbi_provider.auth.config import AuthConfig
from powerbi_provider.auth.providers import create_token_provider
from powerbi_provider.transport.chain import build_transport
from powerbi_provider.transport.enhanced_retry import RetryConfig
from powerbi_provider.utils.config import Config, get_config
from powerbi_provider.utils.exceptions import ConfigurationError

from .apps import AppsMixin, TemplateAppsMixin
from .base import BaseClient
from .dashboards import DashboardsMixin
from .dataflows import DataflowsMixin
from .embed import EmbedMixin
from .gateways import GatewaysMixin
from .pipelines import PipelinesMixin

logger = structlog.get_logger(__name__)


class PowerBIClient(
    DashboardsMixin,
    DataflowsMixin,
    GatewaysMixin,
    PipelinesMixin,
    AppsMixin,
    TemplateAppsMixin,
    EmbedMixin,
    BaseClient,
):
    """
    Client for the Power BI REST API.

    Usually created with ``from_auth_config``, which validates the
    authentication settings, creates the token provider and builds the
    transport chain around it.

    Example:
        async with PowerBIClient.from_auth_config(AuthConfig.from_env()) as client:
            dashboards = await client.get_dashboards(group_id)
    """

    @classmethod
    def from_auth_config(
        cls,
        auth_config: AuthConfig,
        config: Optional[Config] = None,
        retry_config: Optional[RetryConfig] = None,
        base_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PowerBIClient":
        """
        Create a client for the active authentication method.

        Args:
            auth_config: Authentication configuration
            config: Provider settings (uses global config if None)
            retry_config: Enables the enhanced retry layer. When None, the
                layer is enabled from ``config.enhanced_retry``
            base_transport: Innermost transport (pooled HTTPS if None)

        Raises:
            ConfigurationError: If the authentication configuration is invalid
        """
        config = config or get_config()
        token_provider = create_token_provider(auth_config, settings=config)

        if retry_config is None and config.enhanced_retry:
            retry_config = config.retry_config()

        logger.info(
            "Creating Power BI client",
            method=token_provider.credential_type.value,
            enhanced_retry=retry_config is not None,
        )
        transport = build_transport(token_provider, config, retry_config, base=base_transport)
        return cls(transport, config=config, token_provider=token_provider)

    def with_retry(
        self,
        retry_config: Optional[RetryConfig] = None,
        base_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PowerBIClient":
        """
        Create a client sharing this client's token provider whose chain
        includes the enhanced retry layer.

        The provider is closed when the last client sharing it is closed.

        Args:
            retry_config: Retry policy (defaults to ``RetryConfig()``)
            base_transport: Innermost transport (pooled HTTPS if None)
        """
        if self.token_provider is None:
            raise ConfigurationError("a token provider is required to build a retrying client")

        transport = build_transport(
            self.token_provider,
            self.config,
            retry_config or RetryConfig(),
            base=base_transport,
        )
        return type(self)(
            transport,
            config=self.config,
            token_provider=self.token_provider,
            provider_users=self._provider_users,
        )

    @property
    def credential_type(self) -> Optional[str]:
        if self.token_provider is None:
            return None
        return self.token_provider.credential_type.value


def create_client(
    auth_config: Optional[AuthConfig] = None,
    config: Optional[Config] = None,
) -> PowerBIClient:
    """Create a client from the given settings, or from the environment."""
    return PowerBIClient.from_auth_config(auth_config or AuthConfig.from_env(), config=config)

