"""
Command line interface for the Power BI provider.
"""

import click

from powerbi_provider.utils.config import get_config
from powerbi_provider.utils.logging import setup_logging

from .auth import auth_cli


@click.group()
@click.version_option(package_name="powerbi-provider")
def main():
    """Power BI provider tools."""
    setup_logging(get_config())


main.add_command(auth_cli)


__all__ = ["main"]
