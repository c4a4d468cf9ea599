"""
Power BI REST API client package.
"""

from .base import BaseClient, PaginationOptions, build_pagination_query, escape_path, is_not_found
from .client import PowerBIClient, create_client

__all__ = [
    "PowerBIClient",
    "BaseClient",
    "create_client",
    "PaginationOptions",
    "build_pagination_query",
    "escape_path",
    "is_not_found",
]
