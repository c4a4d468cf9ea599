"""
Pytest configuration and fixtures for Power BI provider tests.
"""

import datetime
import os
from typing import List

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from powerbi_provider.auth.interfaces import TokenProvider
from powerbi_provider.auth.config import AuthMethod
from powerbi_provider.utils.config import Config, reset_config, set_config


@pytest.fixture
def test_config():
    """Create a test configuration."""
    config = Config(
        api_base_url="https://api.powerbi.test/v1.0/myorg",
        authority_url="https://login.example.test",
        http_timeout=10,
        rate_limit_max_retries=2,
        rate_limit_default_delay=0.5,
        intermittent_max_retries=2,
        intermittent_retry_delay=0.1,
        log_level="DEBUG",
        log_format="text",
    )
    set_config(config)
    return config


@pytest.fixture(autouse=True)
def reset_global_config():
    """Reset global configuration after each test."""
    yield
    reset_config()


@pytest.fixture(autouse=True)
def clean_powerbi_env(monkeypatch):
    """Keep POWERBI_* variables of the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("POWERBI_") or key in ("IDENTITY_ENDPOINT", "IDENTITY_HEADER"):
            monkeypatch.delenv(key, raising=False)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


class StaticTokenProvider(TokenProvider):
    """Hands out numbered tokens and counts the calls."""

    def __init__(self, prefix: str = "token"):
        self.prefix = prefix
        self.calls = 0
        self.closed = False

    @property
    def credential_type(self) -> AuthMethod:
        return AuthMethod.ACCESS_TOKEN

    async def get_token(self) -> str:
        if self.closed:
            raise RuntimeError("token provider is closed")
        self.calls += 1
        return f"{self.prefix}-{self.calls}"

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def token_provider():
    return StaticTokenProvider()


def make_self_signed(private_key, common_name: str = "powerbi-provider-test") -> x509.Certificate:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(private_key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_certificate(rsa_key):
    return make_self_signed(rsa_key)


@pytest.fixture(scope="session")
def cert_pem(rsa_certificate) -> bytes:
    return rsa_certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture(scope="session")
def key_pem(rsa_key) -> bytes:
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def self_signed():
    """Factory for self-signed certificates around a given private key."""
    return make_self_signed
