"""
Authentication package for the Power BI provider.

Resolves which authentication method a configuration enables and produces
the bearer token provider for it.
"""

from .config import AuthConfig, AuthMethod
from .exceptions import (
    NoAuthMethodConfiguredError,
    MultipleAuthMethodsConfiguredError,
    MissingRequiredFieldError,
    ConflictingFieldsError,
    NoTokenProvidedError,
    TokenRequestFailedError,
    TokenParseError,
    ExternalToolError,
    CertificateParseError,
    UnsupportedKeyTypeError,
    UnsupportedCertificateFormatError,
)
from .interfaces import TokenInfo, TokenProvider
from .providers import create_token_provider
from .selector import detect_auth_methods, resolve_active_method, validate_auth_config

__all__ = [
    # Configuration
    "AuthConfig",
    "AuthMethod",

    # Selection
    "detect_auth_methods",
    "resolve_active_method",
    "validate_auth_config",

    # Providers
    "TokenInfo",
    "TokenProvider",
    "create_token_provider",

    # Exceptions
    "NoAuthMethodConfiguredError",
    "MultipleAuthMethodsConfiguredError",
    "MissingRequiredFieldError",
    "ConflictingFieldsError",
    "NoTokenProvidedError",
    "TokenRequestFailedError",
    "TokenParseError",
    "ExternalToolError",
    "CertificateParseError",
    "UnsupportedKeyTypeError",
    "UnsupportedCertificateFormatError",
]
