"""
Authentication configuration and token acquisition exceptions.
"""

from typing import Iterable

from powerbi_provider.utils.exceptions import AuthenticationError, ConfigurationError


class NoAuthMethodConfiguredError(ConfigurationError):
    """Raised when no authentication method can be detected."""

    def __init__(self):
        super().__init__(
            "no authentication method configured. Please configure one of: "
            "access_token, managed_identity, azure_cli, certificate, "
            "client_secret, or username/password"
        )


class MultipleAuthMethodsConfiguredError(ConfigurationError):
    """Raised when more than one authentication method is detected."""

    def __init__(self, methods: Iterable[str]):
        self.methods = list(methods)
        super().__init__(
            "multiple authentication methods configured "
            f"({', '.join(self.methods)}). Please use only one authentication method",
            {"methods": self.methods},
        )


class MissingRequiredFieldError(ConfigurationError):
    """Raised when the active method lacks one of its companion fields."""

    def __init__(self, field: str, method: str):
        self.field = field
        self.method = method
        super().__init__(
            f"{field} is required when using {method} authentication",
            {"field": field, "method": method},
        )


class ConflictingFieldsError(ConfigurationError):
    """Raised when two mutually exclusive fields are both set."""

    def __init__(self, first: str, second: str):
        self.fields = (first, second)
        super().__init__(
            f"{first} and {second} cannot be used together",
            {"fields": [first, second]},
        )


class NoTokenProvidedError(AuthenticationError):
    """Raised when the direct token provider holds an empty token."""

    def __init__(self):
        super().__init__("no access token provided")


class TokenRequestFailedError(AuthenticationError):
    """Raised when an identity endpoint answers with a non-200 status."""

    def __init__(self, status_code: int, body: str, endpoint: str = "token"):
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"{endpoint} request failed with status {status_code}: {body}",
            {"status_code": status_code, "endpoint": endpoint},
        )


class TokenParseError(AuthenticationError):
    """Raised when a token response cannot be parsed."""
    pass


class ExternalToolError(AuthenticationError):
    """Raised when the Azure CLI cannot produce a token."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        super().__init__(message, {"stderr": stderr})


class CertificateParseError(AuthenticationError):
    """Raised when no usable certificate and private key pair is found."""
    pass


class UnsupportedKeyTypeError(AuthenticationError):
    """Raised when the certificate's private key is not an RSA key."""
    pass


class UnsupportedCertificateFormatError(AuthenticationError):
    """Raised when certificate input is neither PEM nor PKCS#12."""
    pass
