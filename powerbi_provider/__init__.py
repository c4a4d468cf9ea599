"""
Power BI Provider - Python client for managing Power BI resources as code

Authenticates against Azure Entra ID with any of the supported credential
types and talks to the Power BI REST API through a retrying, token-injecting
HTTP transport chain.
"""

__version__ = "0.1.0"
__description__ = "Python client for managing Power BI resources as code"

# Core imports for easy access
from powerbi_provider.auth import AuthConfig, AuthMethod, create_token_provider, validate_auth_config
from powerbi_provider.client import PaginationOptions, PowerBIClient, is_not_found
from powerbi_provider.transport import RetryConfig, retry_async
from powerbi_provider.utils.config import Config
from powerbi_provider.utils.exceptions import HTTPUnsuccessfulError, PowerBIProviderError

__all__ = [
    # Core classes
    "PowerBIClient",
    "PaginationOptions",
    "is_not_found",

    # Authentication
    "AuthConfig",
    "AuthMethod",
    "create_token_provider",
    "validate_auth_config",

    # Retry
    "RetryConfig",
    "retry_async",

    # Utils
    "Config",
    "PowerBIProviderError",
    "HTTPUnsuccessfulError",

    # Version info
    "__version__",
]
