"""
Authentication configuration for the Power BI provider.

The provider accepts a flat bundle of credential fields. Which authentication
method is active is derived from the fields that are set, see
``powerbi_provider.auth.selector``.
"""

import os
from enum import Enum
from typing import Any, Dict, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)


class AuthMethod(str, Enum):
    """Supported authentication methods."""
    ACCESS_TOKEN = "access_token"
    MANAGED_IDENTITY = "managed_identity"
    AZURE_CLI = "azure_cli"
    CERTIFICATE = "certificate"
    CLIENT_SECRET = "client_secret"
    USERNAME_PASSWORD = "username_password"

    @property
    def display_name(self) -> str:
        """Name used in validation messages."""
        if self is AuthMethod.USERNAME_PASSWORD:
            return "username/password"
        return self.value


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Created once from provider configuration (or the ``POWERBI_*`` environment
    variables) and consumed when the client is constructed. Empty strings are
    treated the same as unset fields.
    """

    model_config = ConfigDict(frozen=True)

    # Service principal / user identity
    tenant_id: Optional[str] = Field(default=None, description="Azure tenant ID")
    client_id: Optional[str] = Field(default=None, description="Application (client) ID")
    client_secret: Optional[str] = Field(default=None, repr=False, description="Application secret")
    username: Optional[str] = Field(default=None, description="User name for the legacy password flow")
    password: Optional[str] = Field(default=None, repr=False, description="Password for the legacy password flow")

    # Certificate authentication
    certificate_path: Optional[str] = Field(default=None, description="Path to a PEM or PKCS#12 certificate")
    certificate_data: Optional[str] = Field(default=None, repr=False, description="Base64 encoded certificate")
    certificate_password: Optional[str] = Field(default=None, repr=False, description="Certificate/key password")

    # Managed Identity settings
    use_managed_identity: bool = Field(default=False, description="Use managed identity")
    managed_identity_id: Optional[str] = Field(default=None, description="User-assigned managed identity client ID")

    # Azure CLI
    use_azure_cli: bool = Field(default=False, description="Use the logged-in Azure CLI account")

    # Direct token
    access_token: Optional[str] = Field(default=None, repr=False, description="Pre-obtained access token")

    @field_validator(
        "tenant_id",
        "client_id",
        "client_secret",
        "username",
        "password",
        "certificate_path",
        "certificate_data",
        "certificate_password",
        "managed_identity_id",
        "access_token",
    )
    @classmethod
    def _empty_as_none(cls, value: Optional[str]) -> Optional[str]:
        if value == "":
            return None
        return value

    @classmethod
    def from_env(cls, prefix: str = "POWERBI_") -> "AuthConfig":
        """
        Create configuration from environment variables.

        Args:
            prefix: Environment variable prefix

        Returns:
            AuthConfig instance
        """
        config_dict: Dict[str, Any] = {}

        env_mapping = {
            "TENANT_ID": "tenant_id",
            "CLIENT_ID": "client_id",
            "CLIENT_SECRET": "client_secret",
            "USERNAME": "username",
            "PASSWORD": "password",
            "CERTIFICATE_PATH": "certificate_path",
            "CERTIFICATE_DATA": "certificate_data",
            "CERTIFICATE_PASSWORD": "certificate_password",
            "USE_MANAGED_IDENTITY": "use_managed_identity",
            "MANAGED_IDENTITY_ID": "managed_identity_id",
            "USE_AZURE_CLI": "use_azure_cli",
            "ACCESS_TOKEN": "access_token",
        }
        bool_fields = {"use_managed_identity", "use_azure_cli"}

        for env_key, config_key in env_mapping.items():
            value = os.getenv(f"{prefix}{env_key}")
            if not value:
                continue

            if config_key in bool_fields:
                config_dict[config_key] = value.lower() in ("true", "1", "yes", "on")
            else:
                config_dict[config_key] = value

        logger.debug("Loaded auth configuration from environment", fields=sorted(config_dict))
        return cls(**config_dict)
