"""
Installed apps and template apps.
"""

from typing import Any, Dict

from .base import escape_path


class AppsMixin:
    """Read access to installed apps and their content."""

    async def get_apps(self) -> Dict[str, Any]:
        return await self.do_json("GET", "apps")

    async def get_app(self, app_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"apps/{escape_path(app_id)}")

    async def get_app_dashboards(self, app_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"apps/{escape_path(app_id)}/dashboards")

    async def get_app_dashboard(self, app_id: str, dashboard_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"apps/{escape_path(app_id)}/dashboards/{escape_path(dashboard_id)}")

    async def get_app_reports(self, app_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"apps/{escape_path(app_id)}/reports")

    async def get_app_report(self, app_id: str, report_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"apps/{escape_path(app_id)}/reports/{escape_path(report_id)}")

    async def get_app_tiles(self, app_id: str, dashboard_id: str) -> Dict[str, Any]:
        url = f"apps/{escape_path(app_id)}/dashboards/{escape_path(dashboard_id)}/tiles"
        return await self.do_json("GET", url)

    async def get_app_tile(self, app_id: str, dashboard_id: str, tile_id: str) -> Dict[str, Any]:
        url = f"apps/{escape_path(app_id)}/dashboards/{escape_path(dashboard_id)}/tiles/{escape_path(tile_id)}"
        return await self.do_json("GET", url)


class TemplateAppsMixin:
    """Template app installation."""

    async def get_template_apps(self) -> Dict[str, Any]:
        return await self.do_json("GET", "templateApps")

    async def get_template_app(self, template_app_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"templateApps/{escape_path(template_app_id)}")

    async def install_template_app(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("POST", "templateApps/install", request)

    async def get_template_app_installation(self, installation_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"templateApps/installations/{escape_path(installation_id)}")

    async def uninstall_template_app(self, installation_id: str) -> None:
        await self.do_json("DELETE", f"templateApps/installations/{escape_path(installation_id)}")
