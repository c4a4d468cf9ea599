"""
Dashboards and tiles.
"""

from typing import Any, Dict, Optional

from .base import PaginationOptions, escape_path, with_query


class DashboardsMixin:
    """Dashboard operations, in a workspace or in My Workspace."""

    @staticmethod
    def _dashboards_url(group_id: Optional[str]) -> str:
        if group_id:
            return f"groups/{escape_path(group_id)}/dashboards"
        return "dashboards"

    async def create_dashboard(self, request: Dict[str, Any], group_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.do_json("POST", self._dashboards_url(group_id), request)

    async def get_dashboards(self, group_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.do_json("GET", self._dashboards_url(group_id))

    async def get_dashboards_with_pagination(
        self, group_id: str, options: Optional[PaginationOptions] = None
    ) -> Dict[str, Any]:
        return await self.get_all_pages(with_query(self._dashboards_url(group_id), options))

    async def get_dashboard(self, dashboard_id: str, group_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._dashboards_url(group_id)}/{escape_path(dashboard_id)}")

    async def delete_dashboard(self, dashboard_id: str, group_id: Optional[str] = None) -> None:
        await self.do_json("DELETE", f"{self._dashboards_url(group_id)}/{escape_path(dashboard_id)}")

    async def get_tiles(self, dashboard_id: str, group_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._dashboards_url(group_id)}/{escape_path(dashboard_id)}/tiles")

    async def get_tile(self, dashboard_id: str, tile_id: str, group_id: Optional[str] = None) -> Dict[str, Any]:
        url = f"{self._dashboards_url(group_id)}/{escape_path(dashboard_id)}/tiles/{escape_path(tile_id)}"
        return await self.do_json("GET", url)

    async def clone_tile(
        self,
        dashboard_id: str,
        tile_id: str,
        request: Dict[str, Any],
        group_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self._dashboards_url(group_id)}/{escape_path(dashboard_id)}/tiles/{escape_path(tile_id)}/Clone"
        return await self.do_json("POST", url, request)
