"""
Embed token generation.
"""

from typing import Any, Dict

from .base import escape_path


class EmbedMixin:
    """GenerateToken endpoints for embedding content."""

    async def generate_embed_token(self, workspace_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("POST", f"groups/{escape_path(workspace_id)}/reports/GenerateToken", request)

    async def generate_embed_token_for_report(
        self, workspace_id: str, report_id: str, request: Dict[str, Any]
    ) -> Dict[str, Any]:
        url = f"groups/{escape_path(workspace_id)}/reports/{escape_path(report_id)}/GenerateToken"
        return await self.do_json("POST", url, request)

    async def generate_embed_token_for_dataset(
        self, workspace_id: str, dataset_id: str, request: Dict[str, Any]
    ) -> Dict[str, Any]:
        url = f"groups/{escape_path(workspace_id)}/datasets/{escape_path(dataset_id)}/GenerateToken"
        return await self.do_json("POST", url, request)

    async def generate_embed_token_for_dashboard(
        self, workspace_id: str, dashboard_id: str, request: Dict[str, Any]
    ) -> Dict[str, Any]:
        url = f"groups/{escape_path(workspace_id)}/dashboards/{escape_path(dashboard_id)}/GenerateToken"
        return await self.do_json("POST", url, request)

    async def generate_embed_token_for_tile(
        self, workspace_id: str, dashboard_id: str, tile_id: str, request: Dict[str, Any]
    ) -> Dict[str, Any]:
        url = (
            f"groups/{escape_path(workspace_id)}/dashboards/{escape_path(dashboard_id)}"
            f"/tiles/{escape_path(tile_id)}/GenerateToken"
        )
        return await self.do_json("POST", url, request)
