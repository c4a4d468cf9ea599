"""
Authentication method selection.

``detect_auth_methods`` is the only place that knows how configured fields map
to authentication methods. Configuration validation and client construction
both go through it, so they can never disagree on the active method.

Detection order is:

1. ``access_token`` when a token is set
2. ``managed_identity`` when the flag is set
3. ``azure_cli`` when the flag is set
4. ``username_password`` when both username and password are set
5. otherwise ``certificate`` when a certificate path or data is set,
   and ``client_secret`` when a client secret is set

Step 5 is only evaluated when username/password is incomplete. A config with
a client secret plus username and password therefore resolves to
``username_password`` (the password flow needs the secret too), while a
config with both a certificate and a client secret is a conflict. Existing
configurations depend on this, keep it.
"""

from typing import Dict, List, Tuple

import structlog

from .config import AuthConfig, AuthMethod
from .exceptions import (
    ConflictingFieldsError,
    MissingRequiredFieldError,
    MultipleAuthMethodsConfiguredError,
    NoAuthMethodConfiguredError,
)

logger = structlog.get_logger(__name__)


# Companion fields each method needs, checked in this order
REQUIRED_FIELDS: Dict[AuthMethod, Tuple[str, ...]] = {
    AuthMethod.ACCESS_TOKEN: (),
    AuthMethod.MANAGED_IDENTITY: (),
    AuthMethod.AZURE_CLI: (),
    AuthMethod.CERTIFICATE: ("tenant_id", "client_id"),
    AuthMethod.CLIENT_SECRET: ("tenant_id", "client_id"),
    AuthMethod.USERNAME_PASSWORD: (
        "tenant_id",
        "client_id",
        "client_secret",
        "username",
        "password",
    ),
}


def detect_auth_methods(config: AuthConfig) -> List[AuthMethod]:
    """Return every authentication method the configuration enables."""
    methods: List[AuthMethod] = []

    if config.access_token:
        methods.append(AuthMethod.ACCESS_TOKEN)

    if config.use_managed_identity:
        methods.append(AuthMethod.MANAGED_IDENTITY)

    if config.use_azure_cli:
        methods.append(AuthMethod.AZURE_CLI)

    if config.username and config.password:
        methods.append(AuthMethod.USERNAME_PASSWORD)
    else:
        if config.certificate_path or config.certificate_data:
            methods.append(AuthMethod.CERTIFICATE)
        if config.client_secret:
            methods.append(AuthMethod.CLIENT_SECRET)

    return methods


def resolve_active_method(config: AuthConfig) -> AuthMethod:
    """
    Determine the single active authentication method.

    Raises:
        NoAuthMethodConfiguredError: When no method is configured
        MultipleAuthMethodsConfiguredError: When more than one is configured
    """
    methods = detect_auth_methods(config)

    if not methods:
        raise NoAuthMethodConfiguredError()

    if len(methods) > 1:
        raise MultipleAuthMethodsConfiguredError(m.value for m in methods)

    return methods[0]


def validate_auth_config(config: AuthConfig) -> AuthMethod:
    """
    Resolve the active method and check the fields it depends on.

    Args:
        config: Authentication configuration

    Returns:
        The active authentication method

    Raises:
        ConfigurationError: Subclass describing the first problem found
    """
    method = resolve_active_method(config)

    for field in REQUIRED_FIELDS[method]:
        if not getattr(config, field):
            raise MissingRequiredFieldError(field, method.display_name)

    if method is AuthMethod.CERTIFICATE and config.certificate_path and config.certificate_data:
        raise ConflictingFieldsError("certificate_path", "certificate_data")

    logger.debug("Resolved authentication method", method=method.value)
    return method
