"""
Utilities package for the Power BI provider.
"""

from powerbi_provider.utils.config import Config, get_config, set_config, reset_config
from powerbi_provider.utils.exceptions import (
    PowerBIProviderError,
    ConfigurationError,
    AuthenticationError,
    CommunicationError,
    HTTPUnsuccessfulError,
    MaxRetriesExceededError,
)

__all__ = [
    # Config
    "Config",
    "get_config",
    "set_config",
    "reset_config",

    # Exceptions
    "PowerBIProviderError",
    "ConfigurationError",
    "AuthenticationError",
    "CommunicationError",
    "HTTPUnsuccessfulError",
    "MaxRetriesExceededError",
]
