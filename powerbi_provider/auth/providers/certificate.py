"""
Service principal authentication with a certificate.

The certificate and its RSA private key come from a PEM file, a PKCS#12
(PFX) bundle, or the same content base64 encoded in ``certificate_data``.
Tokens are requested with a signed client assertion (RFC 7523).
"""

import base64
import binascii
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import httpx
import jwt
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from powerbi_provider.utils.config import Config

from ..config import AuthMethod
from ..exceptions import (
    CertificateParseError,
    UnsupportedCertificateFormatError,
    UnsupportedKeyTypeError,
)
from ..interfaces import TokenInfo
from .base import POWERBI_SCOPE, OAuthTokenProvider

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"

# Client assertions are valid for ten minutes
ASSERTION_LIFETIME = 600

PEM_BLOCK_PATTERN = re.compile(
    rb"-----BEGIN (?P<label>[A-Z0-9 ]+)-----.*?-----END (?P=label)-----",
    re.DOTALL,
)
PRIVATE_KEY_SUFFIX = b"PRIVATE KEY"


@dataclass
class CertificateCredential:
    """A parsed certificate and its RSA private key."""
    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey

    @property
    def thumbprint(self) -> str:
        """Base64url SHA-1 thumbprint, as used in the ``x5t`` header."""
        digest = self.certificate.fingerprint(hashes.SHA1())
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _split_pem_blocks(data: bytes) -> List[Tuple[bytes, bytes]]:
    return [(match.group("label"), match.group(0)) for match in PEM_BLOCK_PATTERN.finditer(data)]


def _load_pem(data: bytes, password: Optional[bytes]) -> Tuple[x509.Certificate, object]:
    cert_block = None
    key_label = key_block = None

    # Blocks may appear in any order, so collect them all before choosing
    for label, block in _split_pem_blocks(data):
        if label == b"CERTIFICATE" and cert_block is None:
            cert_block = block
        elif label.endswith(PRIVATE_KEY_SUFFIX) and key_block is None:
            key_label, key_block = label, block

    if cert_block is None:
        raise CertificateParseError("no certificate found in PEM data")
    if key_block is None:
        raise CertificateParseError("no private key found in PEM data")

    try:
        certificate = x509.load_pem_x509_certificate(cert_block)
    except ValueError as e:
        raise CertificateParseError(f"failed to parse certificate: {e}")

    encrypted = key_label == b"ENCRYPTED PRIVATE KEY" or b"Proc-Type: 4,ENCRYPTED" in key_block
    try:
        private_key = serialization.load_pem_private_key(
            key_block,
            password=password if encrypted else None,
        )
    except (ValueError, TypeError) as e:
        raise CertificateParseError(f"failed to parse private key: {e}")

    return certificate, private_key


def _load_pkcs12(data: bytes, password: Optional[bytes]) -> Tuple[x509.Certificate, object]:
    try:
        private_key, certificate, _ = pkcs12.load_key_and_certificates(data, password)
    except ValueError:
        raise UnsupportedCertificateFormatError(
            "certificate is neither PEM nor a readable PKCS#12 bundle"
        )

    if certificate is None or private_key is None:
        raise CertificateParseError("PKCS#12 bundle must contain a certificate and a private key")
    return certificate, private_key


def load_certificate(data: bytes, password: Optional[str] = None) -> CertificateCredential:
    """
    Parse certificate material into a certificate and RSA key pair.

    Args:
        data: PEM or PKCS#12 bytes
        password: Password for an encrypted key or PKCS#12 bundle

    Raises:
        CertificateParseError: If no usable certificate/key pair is found
        UnsupportedCertificateFormatError: If the data is neither PEM nor PKCS#12
        UnsupportedKeyTypeError: If the private key is not RSA
    """
    password_bytes = password.encode() if password else None

    if b"-----BEGIN" in data:
        certificate, private_key = _load_pem(data, password_bytes)
    else:
        certificate, private_key = _load_pkcs12(data, password_bytes)

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise UnsupportedKeyTypeError(
            f"private key must be RSA, got {type(private_key).__name__}"
        )

    return CertificateCredential(certificate=certificate, private_key=private_key)


def read_certificate_source(
    certificate_path: Optional[str] = None,
    certificate_data: Optional[str] = None,
) -> bytes:
    """Read raw certificate bytes from a file path or base64 data."""
    if certificate_path:
        try:
            return Path(certificate_path).read_bytes()
        except OSError as e:
            raise CertificateParseError(f"failed to read certificate file: {e}")

    if certificate_data:
        try:
            return base64.b64decode("".join(certificate_data.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise CertificateParseError(f"failed to decode certificate data: {e}")

    raise CertificateParseError("either certificate_path or certificate_data is required")


class CertificateProvider(OAuthTokenProvider):
    """OAuth2 client credentials grant with a certificate-signed assertion."""

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        credential: CertificateCredential,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Config] = None,
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.credential = credential
        super().__init__(http_client=http_client, settings=settings)

    @classmethod
    def from_source(
        cls,
        tenant_id: str,
        client_id: str,
        certificate_path: Optional[str] = None,
        certificate_data: Optional[str] = None,
        certificate_password: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Config] = None,
    ) -> "CertificateProvider":
        """Load the certificate from a path or base64 data and build the provider."""
        raw = read_certificate_source(certificate_path, certificate_data)
        credential = load_certificate(raw, certificate_password)
        return cls(tenant_id, client_id, credential, http_client=http_client, settings=settings)

    @property
    def credential_type(self) -> AuthMethod:
        return AuthMethod.CERTIFICATE

    def build_client_assertion(self, now: Optional[float] = None) -> str:
        """Create the signed JWT presented to the token endpoint."""
        issued = int(now if now is not None else time.time())
        claims = {
            "aud": self.token_endpoint(self.tenant_id),
            "iss": self.client_id,
            "sub": self.client_id,
            "jti": str(uuid.uuid4()),
            "nbf": issued,
            "exp": issued + ASSERTION_LIFETIME,
        }
        return jwt.encode(
            claims,
            self.credential.private_key,
            algorithm="RS256",
            headers={"x5t": self.credential.thumbprint},
        )

    async def _fetch_token(self) -> TokenInfo:
        self._logger.debug(
            "Requesting token with certificate assertion",
            client_id=self.client_id,
            thumbprint=self.credential.thumbprint,
        )
        return await self._post_form(
            self.token_endpoint(self.tenant_id),
            {
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_assertion_type": CLIENT_ASSERTION_TYPE,
                "client_assertion": self.build_client_assertion(),
                "scope": POWERBI_SCOPE,
            },
        )
