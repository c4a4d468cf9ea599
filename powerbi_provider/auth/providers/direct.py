"""
Provider for a pre-obtained access token.
"""

from ..config import AuthMethod
from ..exceptions import NoTokenProvidedError
from ..interfaces import TokenProvider


class DirectTokenProvider(TokenProvider):
    """Returns the configured token unchanged. Nothing is cached or refreshed."""

    def __init__(self, access_token: str):
        self._access_token = access_token

    @property
    def credential_type(self) -> AuthMethod:
        return AuthMethod.ACCESS_TOKEN

    async def get_token(self) -> str:
        if not self._access_token:
            raise NoTokenProvidedError()
        return self._access_token
