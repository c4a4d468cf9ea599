"""
CLI commands for checking Power BI authentication settings.

Both commands read the ``POWERBI_*`` environment variables, so they show
exactly what the provider will use.
"""

import asyncio
import sys
from datetime import datetime, timezone

import click
import httpx
import jwt
from rich.console import Console
from rich.table import Table

from powerbi_provider.auth.config import AuthConfig
from powerbi_provider.auth.providers import create_token_provider
from powerbi_provider.auth.selector import validate_auth_config
from powerbi_provider.utils.config import get_config
from powerbi_provider.utils.exceptions import PowerBIProviderError
from powerbi_provider.utils.logging import mask_secret

console = Console()

# Claims worth showing; others are mostly noise
DISPLAY_CLAIMS = ["aud", "iss", "appid", "oid", "tid", "upn", "name", "roles", "scp", "iat", "nbf", "exp"]
TIMESTAMP_CLAIMS = {"iat", "nbf", "exp"}


def claims_table(token: str) -> Table:
    """Render the unverified claims of a JWT access token."""
    claims = jwt.decode(token, options={"verify_signature": False})

    table = Table(title="Token Claims")
    table.add_column("Claim", style="cyan")
    table.add_column("Value", style="magenta")

    for key in DISPLAY_CLAIMS:
        if key not in claims:
            continue
        value = claims[key]
        if key in TIMESTAMP_CLAIMS and isinstance(value, (int, float)):
            value = datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
        elif isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        table.add_row(key, str(value))

    return table


@click.group(name="auth")
def auth_cli():
    """Authentication commands."""
    pass


@auth_cli.command()
def method():
    """Show which authentication method the environment configures."""
    try:
        active = validate_auth_config(AuthConfig.from_env())
    except PowerBIProviderError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    click.echo(active.value)


@auth_cli.command()
@click.option(
    "--claims",
    "show_claims",
    is_flag=True,
    help="Show the unverified claims of the token"
)
def token(show_claims: bool):
    """Acquire a token with the configured method and show it masked."""

    async def do_get_token() -> str:
        provider = create_token_provider(AuthConfig.from_env(), settings=get_config())
        try:
            return await provider.get_token()
        finally:
            await provider.aclose()

    try:
        access_token = asyncio.run(do_get_token())
    except (PowerBIProviderError, httpx.HTTPError) as e:
        click.echo(f"❌ Failed to get token: {e}", err=True)
        sys.exit(1)

    click.echo(f"✅ Token acquired: {mask_secret(access_token, visible_chars=8)}")

    if show_claims:
        try:
            console.print(claims_table(access_token))
        except jwt.PyJWTError as e:
            click.echo(f"⚠️  Could not parse token claims: {e}")
