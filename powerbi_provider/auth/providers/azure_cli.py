"""
Authentication through the locally logged-in Azure CLI.
"""

import asyncio
import json
import shutil
from typing import List, Optional

import structlog

from powerbi_provider.utils.config import Config, get_config

from ..config import AuthMethod
from ..exceptions import ExternalToolError, TokenParseError
from ..interfaces import TokenProvider

logger = structlog.get_logger(__name__)


class AzureCLIProvider(TokenProvider):
    """
    Runs ``az account get-access-token`` for every token request.

    The CLI keeps its own token cache, so nothing is cached here.
    """

    def __init__(self, tenant_id: Optional[str] = None, settings: Optional[Config] = None):
        self.tenant_id = tenant_id
        self.settings = settings or get_config()
        self._logger = logger.bind(provider=self.credential_type.value)

    @property
    def credential_type(self) -> AuthMethod:
        return AuthMethod.AZURE_CLI

    def build_command(self, az_path: str) -> List[str]:
        command = [
            az_path,
            "account",
            "get-access-token",
            "--resource",
            self.settings.resource,
            "--output",
            "json",
        ]
        if self.tenant_id:
            command.extend(["--tenant", self.tenant_id])
        return command

    async def get_token(self) -> str:
        az_path = shutil.which("az")
        if not az_path:
            raise ExternalToolError("Azure CLI (az) not found in PATH")

        self._logger.debug("Requesting token from Azure CLI", tenant_id=self.tenant_id)
        process = await asyncio.create_subprocess_exec(
            *self.build_command(az_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        stderr_text = stderr.decode(errors="replace").strip()

        if process.returncode != 0:
            raise ExternalToolError(
                f"failed to get token from Azure CLI: {stderr_text}",
                stderr=stderr_text,
            )

        try:
            payload = json.loads(stdout)
        except ValueError as e:
            raise TokenParseError(f"failed to parse Azure CLI output: {e}")

        token = payload.get("accessToken") if isinstance(payload, dict) else None
        if not token:
            raise TokenParseError("Azure CLI output did not contain an access token")

        self._logger.info("Acquired access token from Azure CLI")
        return token
